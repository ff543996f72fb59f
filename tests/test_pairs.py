"""Tests for the chain registry and startup context."""

import unittest

from poolarb.exceptions import ConfigurationError
from poolarb.pairs import (
    OLD_TOKEN_POOL_FEE,
    OLD_TOKEN_TICK_SPACING,
    ArbDirection,
    ChainContext,
    to_ether,
)


class TestChainContext(unittest.TestCase):
    def setUp(self):
        self.context = ChainContext.for_chain(8453)

    def test_pool_keys_sorted(self):
        for key in (self.context.direct_pool, self.context.old_token_pool, self.context.wrap_pool):
            self.assertLess(key.currency0.lower(), key.currency1.lower())

    def test_legacy_pool_parameters(self):
        key = self.context.old_token_pool
        self.assertEqual(key.fee, OLD_TOKEN_POOL_FEE)
        self.assertEqual(key.tick_spacing, OLD_TOKEN_TICK_SPACING)
        self.assertEqual(key.hooks, self.context.addresses.old_token_pool_hook)

    def test_templates_swap_back_to_weth(self):
        for direction in ArbDirection:
            template = self.context.templates[direction]
            self.assertNotEqual(template.leg1.pool, template.leg2.pool)

        buy_direct = self.context.templates[ArbDirection.BUY_DIRECT_SELL_LEGACY]
        self.assertEqual(buy_direct.leg1.pool, self.context.direct_pool)
        self.assertEqual(buy_direct.leg1.zero_for_one, self.context.weth_is_currency0_direct)
        self.assertEqual(buy_direct.leg2.zero_for_one, not self.context.weth_is_currency0_old_token)

    def test_sepolia(self):
        context = ChainContext.for_chain(11155111)
        self.assertEqual(context.chain_id, 11155111)

    def test_unknown_chain(self):
        with self.assertRaises(ConfigurationError):
            ChainContext.for_chain(1)


def test_to_ether():
    assert str(to_ether(15 * 10**17)) == "1.5"
    assert to_ether(-10**18) == -1
