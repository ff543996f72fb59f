"""Tests for opportunity detection and the profitability gate."""

from dataclasses import replace

import pytest

from poolarb.decision import detect_opportunity, profit_guard
from poolarb.pairs import ArbDirection
from poolarb.pool_state import PoolSlot0

Q96 = 1 << 96
P = 10**27  # round sqrtPrice so bps come out exact


def slot0(sqrt_price_x96):
    return PoolSlot0(sqrt_price_x96=sqrt_price_x96, tick=0, protocol_fee=0, lp_fee=0)


class TestDetectOpportunity:
    def test_equal_prices_no_opportunity(self, context):
        assert detect_opportunity(slot0(Q96), slot0(Q96), context) is None

    def test_tiny_divergence_ignored(self, context):
        assert detect_opportunity(slot0(Q96), slot0(Q96 + Q96 // 100_000), context) is None

    def test_zero_price_no_opportunity(self, context):
        assert detect_opportunity(slot0(0), slot0(Q96), context) is None
        assert detect_opportunity(slot0(Q96), slot0(0), context) is None

    def test_more_tokens_on_direct_buys_direct(self, context):
        # WETH is currency0 on Base, so sqrtPrice is sqrt(token per WETH)
        opportunity = detect_opportunity(slot0(P * 101 // 100), slot0(P), context)

        assert opportunity.direction is ArbDirection.BUY_DIRECT_SELL_LEGACY
        assert opportunity.price_diff_bps == 100

    def test_more_tokens_on_legacy_buys_legacy(self, context):
        opportunity = detect_opportunity(slot0(P), slot0(P * 102 // 100), context)

        assert opportunity.direction is ArbDirection.BUY_LEGACY_SELL_DIRECT
        assert opportunity.price_diff_bps == 200

    def test_orientation_when_weth_is_currency1(self, context):
        flipped = replace(context, weth_is_currency0_direct=False, weth_is_currency0_old_token=False)

        # Higher raw sqrtPrice now means fewer tokens per WETH
        opportunity = detect_opportunity(slot0(P * 101 // 100), slot0(P), flipped)

        assert opportunity.direction is ArbDirection.BUY_LEGACY_SELL_DIRECT

    def test_str(self, context):
        opportunity = detect_opportunity(slot0(P * 101 // 100), slot0(P), context)
        assert str(opportunity) == "buy-direct-sell-legacy (100 bps divergence)"


class TestProfitGuard:
    def test_passes(self):
        check = profit_guard(1000, 400, 500)

        assert check.ok
        assert check.net_profit_wei == 600

    def test_below_minimum(self):
        check = profit_guard(1000, 400, 700)

        assert not check.ok
        assert check.net_profit_wei == 600
        assert check.min_profit_wei == 700

    def test_exact_minimum_passes(self):
        assert profit_guard(1000, 400, 600).ok

    @pytest.mark.parametrize("profit,gas", [(100, 400), (400, 400)])
    def test_gas_eats_profit(self, profit, gas):
        assert not profit_guard(profit, gas, 1).ok
