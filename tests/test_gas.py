"""Tests for gas and fee estimation."""

import pytest

from poolarb.dex.routers import ArbTx
from poolarb.exceptions import GasEstimationError
from poolarb.gas import estimate_gas_cost
from tests.fakes import FakeRpc

SENDER = "0x1111111111111111111111111111111111111111"
TX = ArbTx(to="0x2222222222222222222222222222222222222222", data="0xdeadbeef")


def node(estimate="0x30d40", priority="0x3b9aca00", block=None):
    """Answers the three gas calls; 0x30d40 = 200000, 0x3b9aca00 = 1 gwei"""
    if block is None:
        block = {"number": "0x10", "baseFeePerGas": "0x2540be400"}  # 10 gwei
    answers = {
        "eth_estimateGas": estimate,
        "eth_maxPriorityFeePerGas": priority,
        "eth_getBlockByNumber": block,
    }
    return FakeRpc(lambda method, params: answers[method])


def test_single_batch_with_three_calls():
    rpc = node()
    estimate_gas_cost(rpc, TX, SENDER)

    assert len(rpc.batches) == 1
    methods = [method for method, _ in rpc.batches[0]]
    assert methods == ["eth_estimateGas", "eth_maxPriorityFeePerGas", "eth_getBlockByNumber"]
    estimate_params = rpc.batches[0][0][1][0]
    assert estimate_params == {"from": SENDER, "to": TX.to, "data": TX.data, "value": "0x0"}
    assert rpc.batches[0][2][1] == ["latest", False]


def test_fee_formulas():
    gas = estimate_gas_cost(node(), TX, SENDER)

    assert gas.gas_limit == 240_000
    assert gas.max_priority_fee_per_gas == 1_200_000_000
    assert gas.max_fee_per_gas == 2 * 10_000_000_000 + 1_200_000_000
    assert gas.estimated_cost_wei == 240_000 * 21_200_000_000


def test_limit_rounds_down():
    gas = estimate_gas_cost(node(estimate=hex(21_001)), TX, SENDER)
    assert gas.gas_limit == 21_001 * 120 // 100


def test_priority_fee_fallback():
    rpc = node(priority=FakeRpc.error("method not found"))
    gas = estimate_gas_cost(rpc, TX, SENDER)

    assert gas.max_priority_fee_per_gas == 1_200_000
    assert gas.max_fee_per_gas == 2 * 10_000_000_000 + 1_200_000


def test_base_fee_falls_back_to_priority_fee():
    gas = estimate_gas_cost(node(block={"number": "0x10"}), TX, SENDER)

    assert gas.max_fee_per_gas == 2 * 1_000_000_000 + 1_200_000_000


def test_block_error_falls_back_to_priority_fee():
    gas = estimate_gas_cost(node(block=FakeRpc.error()), TX, SENDER)
    assert gas.max_fee_per_gas == 2 * 1_000_000_000 + 1_200_000_000


def test_estimate_failure_means_revert():
    rpc = node(estimate=FakeRpc.error("execution reverted: V4TooLittleReceived"))

    with pytest.raises(GasEstimationError, match="V4TooLittleReceived"):
        estimate_gas_cost(rpc, TX, SENDER)
