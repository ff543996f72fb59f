# poolarb/size_search.py
"""
Optimal Size Search
Finds the input size that maximises round-trip profit: a coarse log-spaced
scan followed by ternary refinement around the best coarse candidate.

Every evaluation goes through the QuoteEngine, so cost is counted in round
trips: 2 for the coarse scan and 2 per refinement iteration (at most 32).
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from poolarb.config import (
    CANDIDATE_COUNT,
    CANDIDATE_MAX_EXP,
    CANDIDATE_MIN_EXP,
    MAX_REFINE_ITERATIONS,
    REFINE_PRECISION_WEI,
)
from poolarb.pairs import ArbDirection, to_ether
from poolarb.quote_engine import QuoteEngine, SimulatedLeg

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArbResult:
    direction: ArbDirection
    amount_in: int   # WETH into leg 1
    leg1_out: int    # intermediate token out of leg 1
    leg2_out: int    # WETH out of leg 2
    profit: int      # leg2_out - amount_in


def generate_candidates(
    min_exp: int = CANDIDATE_MIN_EXP,
    max_exp: int = CANDIDATE_MAX_EXP,
    count: int = CANDIDATE_COUNT,
) -> List[int]:
    """`count` log-uniformly spaced sizes in wei, 10**min_exp .. 10**max_exp ether"""
    candidates = []
    for i in range(count):
        exp = min_exp + (max_exp - min_exp) * (i / (count - 1))
        candidates.append(int(math.floor(math.pow(10, exp) * 1e18)))
    return candidates


class OptimalSizeSearch:
    def __init__(
        self,
        quotes: QuoteEngine,
        max_iterations: int = MAX_REFINE_ITERATIONS,
        precision_wei: int = REFINE_PRECISION_WEI,
    ):
        self.quotes = quotes
        self.max_iterations = max_iterations
        self.precision_wei = precision_wei

    def find_optimal_size(self, direction: ArbDirection) -> Optional[ArbResult]:
        candidates = generate_candidates()

        # Coarse phase: all candidates in one simulate call (2 round trips)
        coarse = self.quotes.simulate_candidates(direction, candidates)

        best_idx = -1
        best_profit = 0
        for i, r in enumerate(coarse):
            if r is not None and r.profit > best_profit:
                best_profit = r.profit
                best_idx = i

        if best_idx == -1:
            samples = ", ".join(
                f"{to_ether(candidates[i])}ETH->profit:{to_ether(r.profit)}"
                if r is not None else f"{to_ether(candidates[i])}ETH->null"
                for i, r in enumerate(coarse[:3])
            )
            logger.info(f"No profitable candidate in coarse search. Samples: [{samples}]")
            return None

        logger.debug(
            f"Coarse best: index={best_idx} amount={candidates[best_idx]} profit={best_profit}"
        )

        lo = candidates[best_idx - 1] if best_idx > 0 else candidates[best_idx] // 2
        hi = (
            candidates[best_idx + 1]
            if best_idx < len(candidates) - 1
            else candidates[best_idx] * 2
        )

        best: SimulatedLeg = coarse[best_idx]
        best_amount = candidates[best_idx]

        for iteration in range(self.max_iterations):
            width = hi - lo
            if width < self.precision_wei:
                break

            m1 = lo + width // 3
            m2 = hi - width // 3

            # Both interior points in one simulate call (2 round trips)
            r1, r2 = self.quotes.simulate_candidates(direction, [m1, m2])

            # A missing evaluation compares as -1 and is never kept as best
            p1 = r1.profit if r1 is not None else -1
            p2 = r2.profit if r2 is not None else -1

            if p1 > p2:
                hi = m2
                if r1 is not None and p1 > best.profit:
                    best, best_amount = r1, m1
            else:
                lo = m1
                if r2 is not None and p2 > best.profit:
                    best, best_amount = r2, m2

            logger.debug(
                f"Refine {iteration}: [{to_ether(lo)}, {to_ether(hi)}] "
                f"p1={p1} p2={p2} best={best.profit}"
            )

        if best.profit <= 0:
            return None

        return ArbResult(
            direction=direction,
            amount_in=best_amount,
            leg1_out=best.leg1_out,
            leg2_out=best.leg2_out,
            profit=best.profit,
        )
