# poolarb/dex/routers.py
"""
Universal Router encoding for the atomic two-leg arbitrage.

The whole round trip is one execute() call: a V4_SWAP holding both legs and
two TAKE_ALLs, then SWEEPs of WETH and WCHAN back to the sender. The WETH
delta is positive when the arb is profitable, so nothing is settled up front
and the transaction carries no value.
"""

from dataclasses import dataclass
from typing import List

from eth_abi import encode
from web3 import Web3

from poolarb.pairs import (
    OLD_TOKEN_POOL_FEE,
    OLD_TOKEN_TICK_SPACING,
    WRAP_POOL_FEE,
    WRAP_TICK_SPACING,
    ArbDirection,
    ChainContext,
)

# Universal Router commands
V4_SWAP = 0x10
SWEEP = 0x04

# V4 router actions
SWAP_EXACT_IN_SINGLE = 0x06
SWAP_EXACT_IN = 0x07
TAKE_ALL = 0x0F

MSG_SENDER = "0x0000000000000000000000000000000000000001"

EXECUTE_SELECTOR = Web3.keccak(text="execute(bytes,bytes[],uint256)")[:4]

EXACT_IN_SINGLE_TYPE = "((address,address,uint24,int24,address),bool,uint128,uint128,bytes)"
EXACT_IN_TYPE = "(address,(address,uint24,int24,address,bytes)[],uint128,uint128)"


@dataclass(frozen=True)
class ArbTx:
    to: str
    data: str
    value: int = 0


def apply_slippage(amount: int, slippage_bps: int) -> int:
    return amount * (10_000 - slippage_bps) // 10_000


def encode_swap_exact_in_single(pool_tuple, zero_for_one: bool, amount_in: int, min_out: int) -> bytes:
    return encode([EXACT_IN_SINGLE_TYPE], [(pool_tuple, zero_for_one, amount_in, min_out, b"")])


def encode_swap_exact_in(currency_in: str, path: List[tuple], amount_in: int, min_out: int) -> bytes:
    return encode([EXACT_IN_TYPE], [(currency_in, path, amount_in, min_out)])


def encode_take_all(currency: str, min_amount: int = 0) -> bytes:
    return encode(["address", "uint256"], [currency, min_amount])


def encode_sweep(token: str, recipient: str = MSG_SENDER, min_amount: int = 0) -> bytes:
    return encode(["address", "address", "uint256"], [token, recipient, min_amount])


def encode_v4_swap(actions: bytes, params: List[bytes]) -> bytes:
    return encode(["bytes", "bytes[]"], [actions, params])


def encode_arb_tx(
    context: ChainContext,
    direction: ArbDirection,
    amount_in: int,
    leg1_out: int,
    leg2_out: int,
    deadline: int,
    slippage_bps: int,
) -> ArbTx:
    """
    Encode the round trip for `direction`.
    Leg 2 is sized with the expected leg-1 output; both outputs carry the
    slippage floor.
    """
    addrs = context.addresses
    min_weth_out = apply_slippage(leg2_out, slippage_bps)
    min_leg1_out = apply_slippage(leg1_out, slippage_bps)

    wrap_hop = (WRAP_POOL_FEE, WRAP_TICK_SPACING, addrs.wrap_hook, b"")
    old_token_hop = (OLD_TOKEN_POOL_FEE, OLD_TOKEN_TICK_SPACING, addrs.old_token_pool_hook, b"")

    if direction is ArbDirection.BUY_DIRECT_SELL_LEGACY:
        # WETH -> WCHAN on the direct pool
        leg1 = encode_swap_exact_in_single(
            context.direct_pool.as_tuple(),
            context.weth_is_currency0_direct,
            amount_in,
            min_leg1_out,
        )
        # WCHAN -> legacy token (1:1 wrap pool) -> WETH
        leg2 = encode_swap_exact_in(
            addrs.wchan,
            [(addrs.old_token, *wrap_hop), (addrs.weth, *old_token_hop)],
            leg1_out,
            min_weth_out,
        )
        actions = bytes([SWAP_EXACT_IN_SINGLE, SWAP_EXACT_IN, TAKE_ALL, TAKE_ALL])
    else:
        # WETH -> legacy token -> WCHAN (1:1 wrap pool)
        leg1 = encode_swap_exact_in(
            addrs.weth,
            [(addrs.old_token, *old_token_hop), (addrs.wchan, *wrap_hop)],
            amount_in,
            min_leg1_out,
        )
        # WCHAN -> WETH on the direct pool
        leg2 = encode_swap_exact_in_single(
            context.direct_pool.as_tuple(),
            not context.weth_is_currency0_direct,
            leg1_out,
            min_weth_out,
        )
        actions = bytes([SWAP_EXACT_IN, SWAP_EXACT_IN_SINGLE, TAKE_ALL, TAKE_ALL])

    v4_input = encode_v4_swap(
        actions,
        [leg1, leg2, encode_take_all(addrs.weth), encode_take_all(addrs.wchan)],
    )

    commands = bytes([V4_SWAP, SWEEP, SWEEP])
    inputs = [v4_input, encode_sweep(addrs.weth), encode_sweep(addrs.wchan)]
    data = EXECUTE_SELECTOR + encode(["bytes", "bytes[]", "uint256"], [commands, inputs, deadline])

    return ArbTx(to=addrs.universal_router, data="0x" + data.hex(), value=0)
