# poolarb/gas.py
"""
Gas Estimator
One batch: eth_estimateGas (doubles as the pre-flight simulation),
eth_maxPriorityFeePerGas and the latest block's base fee.
Fees change every block, so nothing here is cached.
"""

import logging
from dataclasses import dataclass

from poolarb.config import (
    FALLBACK_PRIORITY_FEE_WEI,
    GAS_LIMIT_BUFFER_PCT,
    PRIORITY_FEE_BUMP_PCT,
)
from poolarb.dex.routers import ArbTx
from poolarb.exceptions import GasEstimationError
from poolarb.pairs import to_ether
from poolarb.rpc import BatchRpcClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GasCost:
    gas_limit: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    estimated_cost_wei: int


def _hex_to_int(value) -> int:
    return int(value, 16) if isinstance(value, str) else int(value)


def estimate_gas_cost(rpc: BatchRpcClient, tx: ArbTx, sender: str) -> GasCost:
    """
    Raises GasEstimationError when the node refuses to estimate,
    which means the transaction would revert.
    """
    estimate_resp, priority_resp, block_resp = rpc.batch([
        (
            "eth_estimateGas",
            [{"from": sender, "to": tx.to, "data": tx.data, "value": hex(tx.value)}],
        ),
        ("eth_maxPriorityFeePerGas", []),
        ("eth_getBlockByNumber", ["latest", False]),
    ])

    if not estimate_resp.ok:
        raise GasEstimationError(estimate_resp.error or "Gas estimation failed")
    gas_estimate = _hex_to_int(estimate_resp.result)

    priority_fee = (
        _hex_to_int(priority_resp.result) if priority_resp.ok else FALLBACK_PRIORITY_FEE_WEI
    )

    block = block_resp.result if block_resp.ok else None
    base_fee_raw = block.get("baseFeePerGas") if isinstance(block, dict) else None
    base_fee = _hex_to_int(base_fee_raw) if base_fee_raw else priority_fee

    gas_limit = gas_estimate * GAS_LIMIT_BUFFER_PCT // 100
    max_priority_fee = priority_fee * PRIORITY_FEE_BUMP_PCT // 100
    max_fee = 2 * base_fee + max_priority_fee
    cost = gas_limit * max_fee

    logger.debug(
        f"Gas: limit={gas_limit} maxFee={max_fee} priorityFee={max_priority_fee} "
        f"cost={to_ether(cost)} ETH"
    )

    return GasCost(
        gas_limit=gas_limit,
        max_fee_per_gas=max_fee,
        max_priority_fee_per_gas=max_priority_fee,
        estimated_cost_wei=cost,
    )
