# poolarb/pairs.py
"""
Token, Pool & Route Registry
Per-chain addresses, the three pool keys the bot touches, and the immutable
ChainContext built once at startup and shared by every component.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Tuple

from web3 import Web3

from poolarb.exceptions import ConfigurationError

# =============================================================================
# ADDRESSES (checksummed)
# =============================================================================

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class ChainAddresses:
    wchan: str
    hook: str               # direct pool hook
    weth: str
    universal_router: str
    quoter: str
    pool_manager: str
    old_token: str          # legacy token, 1:1 wrappable into WCHAN
    wrap_hook: str
    old_token_pool_hook: str


def _addrs(**kwargs: str) -> ChainAddresses:
    return ChainAddresses(**{k: Web3.to_checksum_address(v) for k, v in kwargs.items()})


CHAIN_ADDRESSES: Dict[int, ChainAddresses] = {
    # Base mainnet
    8453: _addrs(
        wchan="0xBa5ED0000e1CA9136a695f0a848012A16008B032",
        hook="0xD36646b7Aa77707c47478f64C1770e4c2F3f20cc",
        weth="0x4200000000000000000000000000000000000006",
        universal_router="0x6fF5693b99212Da76ad316178A184AB56D299b43",
        quoter="0x0d5e0f971ed27fbff6c2837bf31316121532048d",
        pool_manager="0x498581ff718922c3f8e6a244956af099b2652b2b",
        old_token="0xf48bC234855aB08ab2EC0cfaaEb2A80D065a3b07",
        wrap_hook="0x8243a251EC38fB31c6410B3A28b0F370b4022888",
        old_token_pool_hook="0xb429d62f8f3bFFb98CdB9569533eA23bF0Ba28CC",
    ),
    # ETH Sepolia
    11155111: _addrs(
        wchan="0xBA5ED02404bF5Dc7a0799b8D6CD35FA003D3bc5b",
        hook="0x740c9e5d52e15220a97ADae916465Ca8b49B20CC",
        weth="0xfFf9976782d46CC05630D1f6eBAb18b2324d6B14",
        universal_router="0x3A9D48AB9751398BbFa63ad67599Bb04e4BdF98b",
        quoter="0x61b3f2011a92d183c7dbadbda940a7555ccf9227",
        pool_manager="0xE03A1074c86CFeDd5C142C4F04F1a1536e203543",
        old_token="0x89133805fD93aB6be23ECD0CC14938e59cf22278",
        wrap_hook="0x46cf392C84c6d6270b3e4FD0c4145b790fe0a888",
        old_token_pool_hook=ZERO_ADDRESS,
    ),
}

# =============================================================================
# POOL PARAMETERS
# =============================================================================

DIRECT_POOL_FEE = 0
DIRECT_TICK_SPACING = 60

# Legacy pool uses the dynamic fee flag
OLD_TOKEN_POOL_FEE = 0x800000
OLD_TOKEN_TICK_SPACING = 200

WRAP_POOL_FEE = 0
WRAP_TICK_SPACING = 60


@dataclass(frozen=True)
class PoolKey:
    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str

    def as_tuple(self) -> Tuple[str, str, int, int, str]:
        return (self.currency0, self.currency1, self.fee, self.tick_spacing, self.hooks)


def _sorted_pair(a: str, b: str) -> Tuple[str, str]:
    return (a, b) if a.lower() < b.lower() else (b, a)


def build_direct_pool_key(addrs: ChainAddresses) -> PoolKey:
    """WETH <-> WCHAN pool (direct route)"""
    c0, c1 = _sorted_pair(addrs.weth, addrs.wchan)
    return PoolKey(c0, c1, DIRECT_POOL_FEE, DIRECT_TICK_SPACING, addrs.hook)


def build_old_token_pool_key(addrs: ChainAddresses) -> PoolKey:
    """WETH <-> legacy token pool (dynamic fee)"""
    c0, c1 = _sorted_pair(addrs.weth, addrs.old_token)
    return PoolKey(c0, c1, OLD_TOKEN_POOL_FEE, OLD_TOKEN_TICK_SPACING, addrs.old_token_pool_hook)


def build_wrap_pool_key(addrs: ChainAddresses) -> PoolKey:
    """Legacy token <-> WCHAN 1:1 wrap pool"""
    c0, c1 = _sorted_pair(addrs.old_token, addrs.wchan)
    return PoolKey(c0, c1, WRAP_POOL_FEE, WRAP_TICK_SPACING, addrs.wrap_hook)


# =============================================================================
# ROUTES
# =============================================================================

class ArbDirection(Enum):
    BUY_DIRECT_SELL_LEGACY = "buy-direct-sell-legacy"
    BUY_LEGACY_SELL_DIRECT = "buy-legacy-sell-direct"


@dataclass(frozen=True)
class QuoteTemplate:
    """Static part of one quoter call: only the amount varies"""
    pool: PoolKey
    zero_for_one: bool


@dataclass(frozen=True)
class DirectionTemplate:
    leg1: QuoteTemplate  # WETH -> token
    leg2: QuoteTemplate  # token -> WETH


@dataclass(frozen=True)
class ChainContext:
    """
    Everything derived from the chain id, computed once at startup and
    passed by reference into every component. Never mutated.
    """
    chain_id: int
    addresses: ChainAddresses
    direct_pool: PoolKey
    old_token_pool: PoolKey
    wrap_pool: PoolKey
    weth_is_currency0_direct: bool
    weth_is_currency0_old_token: bool
    templates: Dict[ArbDirection, DirectionTemplate]

    @classmethod
    def for_chain(cls, chain_id: int) -> "ChainContext":
        addrs = CHAIN_ADDRESSES.get(chain_id)
        if addrs is None:
            raise ConfigurationError(f"Unsupported chain: {chain_id}")

        direct = build_direct_pool_key(addrs)
        old_token = build_old_token_pool_key(addrs)
        weth_is0_direct = addrs.weth.lower() < addrs.wchan.lower()
        weth_is0_old = addrs.weth.lower() < addrs.old_token.lower()

        templates = {
            ArbDirection.BUY_DIRECT_SELL_LEGACY: DirectionTemplate(
                leg1=QuoteTemplate(direct, weth_is0_direct),
                leg2=QuoteTemplate(old_token, not weth_is0_old),
            ),
            ArbDirection.BUY_LEGACY_SELL_DIRECT: DirectionTemplate(
                leg1=QuoteTemplate(old_token, weth_is0_old),
                leg2=QuoteTemplate(direct, not weth_is0_direct),
            ),
        }

        return cls(
            chain_id=chain_id,
            addresses=addrs,
            direct_pool=direct,
            old_token_pool=old_token,
            wrap_pool=build_wrap_pool_key(addrs),
            weth_is_currency0_direct=weth_is0_direct,
            weth_is_currency0_old_token=weth_is0_old,
            templates=templates,
        )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

WEI_PER_ETHER = Decimal(10**18)


def to_ether(amount_wei: int) -> Decimal:
    """Wei -> ether for logging (negative amounts allowed)"""
    return Decimal(amount_wei) / WEI_PER_ETHER
