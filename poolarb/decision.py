# poolarb/decision.py
"""
Decision helpers
Opportunity detection from raw pool prices, and the profitability gate that
decides whether a sized arbitrage is worth its gas.
"""

from dataclasses import dataclass
from typing import Optional

from poolarb.pairs import ArbDirection, ChainContext
from poolarb.pool_state import PoolSlot0

Q192 = 1 << 192


@dataclass(frozen=True)
class ArbOpportunity:
    direction: ArbDirection
    price_diff_bps: int

    def __str__(self) -> str:
        return f"{self.direction.value} ({self.price_diff_bps} bps divergence)"


@dataclass(frozen=True)
class ProfitCheck:
    ok: bool
    profit_wei: int
    gas_cost_wei: int
    net_profit_wei: int
    min_profit_wei: int


def _token_per_weth_sqrt(slot0: PoolSlot0, weth_is_currency0: bool) -> int:
    """sqrtPriceX96 is sqrt(currency1/currency0); orient it as sqrt(token/WETH)"""
    if weth_is_currency0 or slot0.sqrt_price_x96 == 0:
        return slot0.sqrt_price_x96
    return Q192 // slot0.sqrt_price_x96


def detect_opportunity(
    direct: PoolSlot0,
    legacy: PoolSlot0,
    context: ChainContext,
) -> Optional[ArbOpportunity]:
    """
    Compare token-per-WETH prices of the two routes (the legacy token wraps
    1:1 into WCHAN, so they are directly comparable). The route giving more
    tokens per WETH is the cheap one and is bought first.
    """
    d = _token_per_weth_sqrt(direct, context.weth_is_currency0_direct)
    b = _token_per_weth_sqrt(legacy, context.weth_is_currency0_old_token)

    if d == 0 or b == 0:
        return None

    diff = abs(d - b)
    price_diff_bps = diff * 10_000 // min(d, b)
    if price_diff_bps < 1:
        return None

    direction = (
        ArbDirection.BUY_DIRECT_SELL_LEGACY if d > b else ArbDirection.BUY_LEGACY_SELL_DIRECT
    )
    return ArbOpportunity(direction=direction, price_diff_bps=price_diff_bps)


def profit_guard(profit_wei: int, gas_cost_wei: int, min_profit_wei: int) -> ProfitCheck:
    """Net profit after gas must reach the configured minimum"""
    net = profit_wei - gas_cost_wei
    return ProfitCheck(
        ok=net >= min_profit_wei,
        profit_wei=profit_wei,
        gas_cost_wei=gas_cost_wei,
        net_profit_wei=net,
        min_profit_wei=min_profit_wei,
    )
