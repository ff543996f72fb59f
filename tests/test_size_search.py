"""
Tests for the optimal size search.

The quote engine is replaced by a profit curve so the search can be checked
against a known optimum without a node.
"""

from typing import Callable, List, Optional

import pytest

from poolarb.pairs import ArbDirection
from poolarb.quote_engine import SimulatedLeg
from poolarb.size_search import OptimalSizeSearch, generate_candidates

ETH = 10**18
DIRECTION = ArbDirection.BUY_DIRECT_SELL_LEGACY


class CurveQuotes:
    """Quote engine stand-in: profit(amount) -> Optional[int]"""

    def __init__(self, profit: Callable[[int], Optional[int]]):
        self.profit = profit
        self.calls: List[List[int]] = []

    def simulate_candidates(self, direction, amounts):
        self.calls.append(list(amounts))
        results = []
        for amount in amounts:
            p = self.profit(amount)
            if p is None:
                results.append(None)
            else:
                results.append(SimulatedLeg(leg1_out=amount * 3, leg2_out=amount + p, profit=p))
        return results


def parabola(peak_at: int, peak_profit: int = 10**16, scale: int = 10**20):
    return lambda amount: peak_profit - (amount - peak_at) ** 2 // scale


class TestGenerateCandidates:
    def test_default_grid(self):
        candidates = generate_candidates()

        assert len(candidates) == 10
        assert candidates[0] == 100000000000000
        assert candidates[-1] == 10000000000000000000
        assert all(a < b for a, b in zip(candidates, candidates[1:]))

    def test_log_spacing(self):
        candidates = generate_candidates(0, 2, 3)
        assert candidates == [ETH, 10 * ETH, 100 * ETH]


class TestOptimalSizeSearch:
    def test_converges_near_peak(self):
        peak = 3 * ETH // 2
        quotes = CurveQuotes(parabola(peak))
        candidates = generate_candidates()
        coarse_best = max(parabola(peak)(c) for c in candidates)

        result = OptimalSizeSearch(quotes).find_optimal_size(DIRECTION)

        assert result is not None
        assert result.direction is DIRECTION
        assert result.profit >= coarse_best
        assert abs(result.amount_in - peak) < 10**16
        assert result.leg1_out == result.amount_in * 3
        assert result.leg2_out == result.amount_in + result.profit

    def test_iteration_cap(self):
        quotes = CurveQuotes(parabola(3 * ETH // 2))

        OptimalSizeSearch(quotes).find_optimal_size(DIRECTION)

        # one coarse evaluation plus at most 15 refinement pairs
        assert len(quotes.calls) <= 16
        assert len(quotes.calls[0]) == 10
        assert all(len(c) == 2 for c in quotes.calls[1:])

    def test_stops_once_bracket_is_narrow(self):
        quotes = CurveQuotes(parabola(3 * ETH // 2))

        OptimalSizeSearch(quotes, precision_wei=ETH).find_optimal_size(DIRECTION)

        # bracket [c6, c8] is ~2.56 ETH wide and shrinks by a third per step
        assert len(quotes.calls) == 1 + 3

    def test_nothing_profitable_returns_none(self):
        quotes = CurveQuotes(lambda amount: -amount // 100)

        assert OptimalSizeSearch(quotes).find_optimal_size(DIRECTION) is None
        assert len(quotes.calls) == 1

    def test_zero_profit_is_not_profitable(self):
        quotes = CurveQuotes(lambda amount: 0)
        assert OptimalSizeSearch(quotes).find_optimal_size(DIRECTION) is None

    def test_all_quotes_fail_returns_none(self):
        quotes = CurveQuotes(lambda amount: None)
        assert OptimalSizeSearch(quotes).find_optimal_size(DIRECTION) is None

    def test_best_observed_point_wins_over_refinement(self):
        candidates = generate_candidates()
        spike = candidates[5]
        quotes = CurveQuotes(lambda amount: 100 if amount == spike else -5)

        result = OptimalSizeSearch(quotes).find_optimal_size(DIRECTION)

        assert result.amount_in == spike
        assert result.profit == 100

    def test_low_edge_bracket_halves_first_candidate(self):
        candidates = generate_candidates()
        quotes = CurveQuotes(lambda amount: 50 if amount == candidates[0] else -1)

        OptimalSizeSearch(quotes, max_iterations=1).find_optimal_size(DIRECTION)

        lo, hi = candidates[0] // 2, candidates[1]
        width = hi - lo
        assert quotes.calls[1] == [lo + width // 3, hi - width // 3]

    def test_high_edge_bracket_doubles_last_candidate(self):
        candidates = generate_candidates()
        quotes = CurveQuotes(lambda amount: 50 if amount == candidates[-1] else -1)

        OptimalSizeSearch(quotes, max_iterations=1).find_optimal_size(DIRECTION)

        lo, hi = candidates[-2], candidates[-1] * 2
        width = hi - lo
        assert quotes.calls[1] == [lo + width // 3, hi - width // 3]

    def test_missing_evaluation_compares_as_minus_one(self):
        candidates = generate_candidates()
        lo, hi = candidates[6], candidates[8]
        m1 = lo + (hi - lo) // 3

        def profit(amount):
            if amount == candidates[7]:
                return 1000
            if amount == m1:
                return None
            return -5

        quotes = CurveQuotes(profit)
        result = OptimalSizeSearch(quotes, max_iterations=2).find_optimal_size(DIRECTION)

        # -1 beats -5, so the upper third is dropped
        m2 = hi - (hi - lo) // 3
        width = m2 - lo
        assert quotes.calls[2] == [lo + width // 3, m2 - width // 3]
        assert result.amount_in == candidates[7]

    @pytest.mark.parametrize("peak_index", [1, 4, 8])
    def test_never_worse_than_coarse_scan(self, peak_index):
        candidates = generate_candidates()
        curve = parabola(candidates[peak_index] + 1234567, peak_profit=10**18, scale=10**19)
        quotes = CurveQuotes(curve)

        result = OptimalSizeSearch(quotes).find_optimal_size(DIRECTION)

        assert result.profit >= max(curve(c) for c in candidates)
