# poolarb/__init__.py
"""
Cross-Pool Arbitrage Bot
Sizes and executes round trips between two routes to the same token pair

Modules:
- config: Settings and fixed parameters
- pairs: Addresses, pool keys and the startup ChainContext
- rpc: JSON-RPC batch transport
- pool_state: Pool slot0 reader
- quote_engine: Batched two-leg quote simulation
- size_search: Optimal input size search
- gas: Gas and fee estimation
- decision: Opportunity detection and profitability gate
- dex.routers: Universal Router transaction encoding
- executor: Signing, broadcast and confirmation
- main: Poll loop and entry point
"""

__version__ = "1.0.0"

from poolarb.pairs import ArbDirection, ChainContext
from poolarb.size_search import ArbResult, generate_candidates

__all__ = [
    "ArbDirection",
    "ChainContext",
    "ArbResult",
    "generate_candidates",
]
