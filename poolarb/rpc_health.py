# poolarb/rpc_health.py
"""
RPC Health Monitoring
Checks that the endpoint answers, serves the expected chain, and is fast enough
"""

import time
from typing import Tuple

from poolarb.config import MAX_RPC_LATENCY
from poolarb.rpc import BatchRpcClient


class RPCHealth:
    def __init__(self, rpc: BatchRpcClient, expected_chain_id: int, max_latency: float = MAX_RPC_LATENCY):
        self.rpc = rpc
        self.expected_chain_id = expected_chain_id
        self.max_latency = max_latency

    def check(self) -> Tuple[bool, str]:
        """
        Check RPC health
        Returns (is_healthy: bool, status_message: str)
        """
        try:
            start = time.time()
            chain_resp, block_resp = self.rpc.batch([
                ("eth_chainId", []),
                ("eth_blockNumber", []),
            ])
            latency = time.time() - start
        except Exception as e:
            return False, str(e)

        if not chain_resp.ok or not block_resp.ok:
            return False, f"RPC error: {chain_resp.error or block_resp.error}"

        chain_id = int(chain_resp.result, 16)
        block = int(block_resp.result, 16)

        if chain_id != self.expected_chain_id:
            return False, f"Chain id {chain_id} != expected {self.expected_chain_id}"

        if latency > self.max_latency:
            return False, f"High latency {latency:.2f}s"

        return True, f"OK (latency={latency:.2f}s, block={block})"
