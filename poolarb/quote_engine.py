# poolarb/quote_engine.py
"""
Batched Quote Engine
Simulates the two legs of an arbitrage for many input sizes at once:
all leg-1 quotes in one HTTP request, then leg-2 quotes (only for candidates
whose leg 1 produced output) in a second one.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from poolarb.pairs import ArbDirection, ChainContext, PoolKey
from poolarb.rpc import BatchRpcClient, RpcCall, eth_call

logger = logging.getLogger(__name__)

# =============================================================================
# QUOTER ABI
# =============================================================================

QUOTE_PARAMS_TYPE = "((address,address,uint24,int24,address),bool,uint128,bytes)"
QUOTE_SELECTOR = Web3.keccak(text=f"quoteExactInputSingle({QUOTE_PARAMS_TYPE})")[:4]
QUOTE_RETURN_TYPES = ["uint256", "uint256"]  # amountOut, gasEstimate


@dataclass(frozen=True)
class SimulatedLeg:
    """Both legs of one candidate; profit may be negative"""
    leg1_out: int
    leg2_out: int
    profit: int


def encode_quote(pool: PoolKey, zero_for_one: bool, amount: int) -> str:
    """quoteExactInputSingle calldata for one exact-in amount"""
    params = (pool.as_tuple(), zero_for_one, amount, b"")
    return "0x" + (QUOTE_SELECTOR + encode([QUOTE_PARAMS_TYPE], [params])).hex()


def decode_quote(result: Optional[str]) -> Optional[int]:
    """amountOut from a quoter return payload, or None when empty/undecodable"""
    if not result or result == "0x":
        return None
    try:
        amount_out, _gas_estimate = decode(QUOTE_RETURN_TYPES, bytes.fromhex(result[2:]))
    except (DecodingError, ValueError, TypeError):
        return None
    return amount_out


class QuoteEngine:
    def __init__(self, rpc: BatchRpcClient, context: ChainContext):
        self.rpc = rpc
        self.quoter = context.addresses.quoter
        self.templates = context.templates

    def _batch_quote(self, calldata: Sequence[str]) -> List[Optional[int]]:
        """One HTTP request; a revert or bad payload yields None for that entry"""
        if not calldata:
            return []

        calls: List[RpcCall] = [eth_call(self.quoter, data) for data in calldata]
        responses = self.rpc.batch(calls)

        outputs = []
        for i, resp in enumerate(responses):
            if resp.error is not None:
                logger.debug(f"Quote {i} reverted: {resp.error}")
                outputs.append(None)
                continue
            outputs.append(decode_quote(resp.result))
        return outputs

    def simulate_candidates(
        self,
        direction: ArbDirection,
        amounts: Sequence[int],
    ) -> List[Optional[SimulatedLeg]]:
        """
        Simulate the round trip for every amount.
        Result is positionally aligned with `amounts`; None marks an infeasible candidate.
        """
        template = self.templates[direction]

        # Phase 1: every leg-1 quote in one request
        leg1_results = self._batch_quote([
            encode_quote(template.leg1.pool, template.leg1.zero_for_one, amount)
            for amount in amounts
        ])
        logger.debug(
            f"Leg1 results: {sum(r is not None for r in leg1_results)}/{len(amounts)} succeeded"
        )

        # Phase 2: leg-2 only where leg 1 produced output
        leg2_indices = [i for i, out in enumerate(leg1_results) if out is not None and out > 0]
        leg2_results = self._batch_quote([
            encode_quote(template.leg2.pool, template.leg2.zero_for_one, leg1_results[i])
            for i in leg2_indices
        ])
        logger.debug(
            f"Leg2 results: {sum(r is not None for r in leg2_results)}/{len(leg2_indices)} succeeded"
        )

        results: List[Optional[SimulatedLeg]] = [None] * len(amounts)
        for i, leg2_out in zip(leg2_indices, leg2_results):
            if leg2_out is not None and leg2_out > 0:
                results[i] = SimulatedLeg(
                    leg1_out=leg1_results[i],
                    leg2_out=leg2_out,
                    profit=leg2_out - amounts[i],
                )
        return results
