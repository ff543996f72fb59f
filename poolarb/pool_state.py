# poolarb/pool_state.py
"""
Pool State Reader
Reads both pools' packed slot0 words from the PoolManager in one batch
(one extsload per pool) and unpacks price, tick and fees.
"""

import logging
from dataclasses import dataclass

from eth_abi import encode
from web3 import Web3

from poolarb.config import POOLS_SLOT
from poolarb.exceptions import PoolStateError
from poolarb.pairs import ChainContext, PoolKey
from poolarb.rpc import BatchRpcClient, eth_call

logger = logging.getLogger(__name__)

EXTSLOAD_SELECTOR = Web3.keccak(text="extsload(bytes32)")[:4]

MASK_160 = (1 << 160) - 1
MASK_24 = (1 << 24) - 1


@dataclass(frozen=True)
class PoolSlot0:
    sqrt_price_x96: int
    tick: int
    protocol_fee: int
    lp_fee: int


@dataclass(frozen=True)
class PoolStates:
    direct: PoolSlot0
    legacy: PoolSlot0


def pool_id(key: PoolKey) -> bytes:
    """keccak256(abi.encode(currency0, currency1, fee, tickSpacing, hooks))"""
    return Web3.keccak(
        encode(["address", "address", "uint24", "int24", "address"], list(key.as_tuple()))
    )


def slot0_storage_key(pid: bytes, pools_slot: int = POOLS_SLOT) -> bytes:
    """Storage slot of Pool.State (whose first word is slot0) in the pools mapping"""
    return Web3.keccak(encode(["bytes32", "uint256"], [pid, pools_slot]))


def extsload_calldata(slot: bytes) -> str:
    return "0x" + (EXTSLOAD_SELECTOR + slot).hex()


def decode_slot0(raw: str) -> PoolSlot0:
    """
    Unpack the slot0 word:
    [0,160) sqrtPriceX96 | [160,184) tick (int24) | [184,208) protocolFee | [208,232) lpFee
    """
    value = int(raw, 16)
    sqrt_price_x96 = value & MASK_160
    tick_raw = (value >> 160) & MASK_24
    tick = tick_raw - (1 << 24) if tick_raw >= (1 << 23) else tick_raw
    protocol_fee = (value >> 184) & MASK_24
    lp_fee = (value >> 208) & MASK_24
    return PoolSlot0(sqrt_price_x96, tick, protocol_fee, lp_fee)


class PoolStateReader:
    """Storage keys and calldata are derived once, at construction."""

    def __init__(self, rpc: BatchRpcClient, context: ChainContext):
        self.rpc = rpc
        self.pool_manager = context.addresses.pool_manager
        self.direct_calldata = extsload_calldata(slot0_storage_key(pool_id(context.direct_pool)))
        self.legacy_calldata = extsload_calldata(slot0_storage_key(pool_id(context.old_token_pool)))

    def read_pool_states(self) -> PoolStates:
        direct_resp, legacy_resp = self.rpc.batch([
            eth_call(self.pool_manager, self.direct_calldata),
            eth_call(self.pool_manager, self.legacy_calldata),
        ])

        if not direct_resp.ok:
            raise PoolStateError(f"Direct pool read failed: {direct_resp.error}", pool="direct")
        if not legacy_resp.ok:
            raise PoolStateError(f"Legacy pool read failed: {legacy_resp.error}", pool="legacy")

        try:
            return PoolStates(
                direct=decode_slot0(direct_resp.result),
                legacy=decode_slot0(legacy_resp.result),
            )
        except (TypeError, ValueError) as e:
            raise PoolStateError(f"Malformed slot0 word: {e}")
