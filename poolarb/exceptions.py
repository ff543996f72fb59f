# poolarb/exceptions.py
"""
Exception hierarchy for the pool arbitrage bot.

Expected negative outcomes (no opportunity, no profitable size, profit below
minimum) are not exceptions. GasEstimationError is the one raised exception
the orchestrator treats as an expected outcome: the candidate would revert.
"""

from typing import Any, Dict, Optional


class PoolArbError(Exception):
    """Base exception for all pool arbitrage errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(PoolArbError):
    """Raised when configuration is missing or invalid."""

    pass


class RpcError(PoolArbError):
    """Raised when the JSON-RPC endpoint returns a malformed response."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.method = method


class PoolStateError(PoolArbError):
    """Raised when a pool's slot0 could not be read."""

    def __init__(
        self,
        message: str,
        pool: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.pool = pool


class GasEstimationError(PoolArbError):
    """Raised when gas estimation fails, i.e. the transaction would revert."""

    pass


class ExecutionError(PoolArbError):
    """Raised when a transaction could not be sent or confirmed."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.tx_hash = tx_hash
