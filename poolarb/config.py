# poolarb/config.py
"""
Arbitrage Bot Configuration
Fixed algorithm parameters live here as constants; deployment values are read
from the environment (optionally config/.env) by load_settings().
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from poolarb.exceptions import ConfigurationError

# -----------------------------
# Paths
# -----------------------------
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / "config" / ".env"
LOG_DIR = BASE_DIR / "logs"

# -----------------------------
# Chain Configuration
# -----------------------------
DEFAULT_CHAIN_ID = 8453  # Base mainnet
SUPPORTED_CHAIN_IDS = (8453, 11155111)

# PoolManager storage: mapping(PoolId => Pool.State) lives at slot 6
POOLS_SLOT = 6

# -----------------------------
# Circuit breaker
# -----------------------------
MAX_CONSECUTIVE_ERRORS = 10

# -----------------------------
# Size search
# -----------------------------
CANDIDATE_MIN_EXP = -4          # 0.0001 ETH
CANDIDATE_MAX_EXP = 1           # 10 ETH
CANDIDATE_COUNT = 10
MAX_REFINE_ITERATIONS = 15
REFINE_PRECISION_WEI = 10**13   # 0.00001 ETH

# -----------------------------
# Gas
# -----------------------------
GAS_LIMIT_BUFFER_PCT = 120
PRIORITY_FEE_BUMP_PCT = 120
FALLBACK_PRIORITY_FEE_WEI = 1_000_000  # 0.001 gwei

# -----------------------------
# Health check
# -----------------------------
MAX_RPC_LATENCY = 2.0  # seconds

# -----------------------------
# Defaults for env-driven settings
# -----------------------------
DEFAULT_POLL_INTERVAL_MS = 2000
DEFAULT_MIN_PROFIT_WEI = 1_000_000_000_000  # 0.000001 ETH
DEFAULT_SLIPPAGE_BPS = 30                   # 0.30%
DEFAULT_TX_DEADLINE_SECONDS = 30
DEFAULT_RPC_TIMEOUT_SECONDS = 10.0
DEFAULT_RECEIPT_TIMEOUT_SECONDS = 120.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    """Deployment settings, read once at startup and never mutated."""
    private_key: str
    rpc_url: str
    chain_id: int = DEFAULT_CHAIN_ID
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    min_profit_wei: int = DEFAULT_MIN_PROFIT_WEI
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    tx_deadline_seconds: int = DEFAULT_TX_DEADLINE_SECONDS
    rpc_timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS
    receipt_timeout_seconds: float = DEFAULT_RECEIPT_TIMEOUT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL
    dry_run: bool = False

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000

    def validate(self) -> None:
        if self.chain_id not in SUPPORTED_CHAIN_IDS:
            raise ConfigurationError(
                f"Unsupported chain id {self.chain_id}",
                {"supported": list(SUPPORTED_CHAIN_IDS)},
            )
        if not 0 <= self.slippage_bps < 10_000:
            raise ConfigurationError(f"SLIPPAGE_BPS out of range: {self.slippage_bps}")
        if self.poll_interval_ms < 0:
            raise ConfigurationError(f"POLL_INTERVAL_MS must be >= 0: {self.poll_interval_ms}")
        if self.min_profit_wei < 0:
            raise ConfigurationError(f"MIN_PROFIT_WEI must be >= 0: {self.min_profit_wei}")
        if self.tx_deadline_seconds <= 0:
            raise ConfigurationError(
                f"TX_DEADLINE_SECONDS must be > 0: {self.tx_deadline_seconds}"
            )


def _require_env(name: str, *aliases: str) -> str:
    for key in (name, *aliases):
        value = os.getenv(key)
        if value:
            return value
    raise ConfigurationError(f"{name} not set in environment or {ENV_PATH}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """
    Load .env (if present) and build validated Settings.
    Raises ConfigurationError on missing or invalid values.
    """
    path = env_path or ENV_PATH
    if path.exists():
        load_dotenv(path)

    settings = Settings(
        private_key=_require_env("PRIVATE_KEY"),
        rpc_url=_require_env("RPC_URL", "BASE_RPC_URL"),
        chain_id=_env_int("CHAIN_ID", DEFAULT_CHAIN_ID),
        poll_interval_ms=_env_int("POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL_MS),
        min_profit_wei=_env_int("MIN_PROFIT_WEI", DEFAULT_MIN_PROFIT_WEI),
        slippage_bps=_env_int("SLIPPAGE_BPS", DEFAULT_SLIPPAGE_BPS),
        tx_deadline_seconds=_env_int("TX_DEADLINE_SECONDS", DEFAULT_TX_DEADLINE_SECONDS),
        rpc_timeout_seconds=_env_float("RPC_TIMEOUT_SECONDS", DEFAULT_RPC_TIMEOUT_SECONDS),
        receipt_timeout_seconds=_env_float(
            "RECEIPT_TIMEOUT_SECONDS", DEFAULT_RECEIPT_TIMEOUT_SECONDS
        ),
        log_level=os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        dry_run=_env_bool("DRY_RUN", False),
    )
    settings.validate()
    return settings
