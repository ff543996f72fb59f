# poolarb/executor.py
"""
Chain client: signing, broadcast and confirmation on top of web3.
Nonce management is the orchestrator's job; this layer takes the nonce it is given.
"""

import logging
from dataclasses import dataclass

from web3 import Web3
from web3.exceptions import TimeExhausted

from poolarb.dex.routers import ArbTx
from poolarb.exceptions import ExecutionError
from poolarb.gas import GasCost

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Receipt:
    status: int
    gas_used: int
    effective_gas_price: int

    @property
    def success(self) -> bool:
        return self.status == 1

    @property
    def fee_wei(self) -> int:
        return self.gas_used * self.effective_gas_price


class ChainClient:
    def __init__(
        self,
        w3: Web3,
        private_key: str,
        chain_id: int,
        receipt_timeout: float = 120.0,
    ):
        self.w3 = w3
        self.account = w3.eth.account.from_key(private_key)
        self.address = Web3.to_checksum_address(self.account.address)
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout

    @classmethod
    def from_rpc_url(
        cls,
        rpc_url: str,
        private_key: str,
        chain_id: int,
        timeout: float = 10.0,
        receipt_timeout: float = 120.0,
    ) -> "ChainClient":
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        return cls(w3, private_key, chain_id, receipt_timeout)

    def get_balance(self) -> int:
        return self.w3.eth.get_balance(self.address)

    def get_transaction_count(self) -> int:
        return self.w3.eth.get_transaction_count(self.address, "pending")

    def send_transaction(self, tx: ArbTx, nonce: int, fees: GasCost) -> str:
        """Sign an EIP-1559 transaction locally and broadcast it; returns the hash"""
        signed = self.account.sign_transaction({
            "type": 2,
            "chainId": self.chain_id,
            "from": self.address,
            "to": Web3.to_checksum_address(tx.to),
            "data": tx.data,
            "value": tx.value,
            "nonce": nonce,
            "gas": fees.gas_limit,
            "maxFeePerGas": fees.max_fee_per_gas,
            "maxPriorityFeePerGas": fees.max_priority_fee_per_gas,
        })
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    def wait_for_receipt(self, tx_hash: str) -> Receipt:
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except TimeExhausted as e:
            raise ExecutionError(f"No receipt after {self.receipt_timeout}s", tx_hash=tx_hash) from e
        return Receipt(
            status=receipt["status"],
            gas_used=receipt["gasUsed"],
            effective_gas_price=receipt.get("effectiveGasPrice", 0) or 0,
        )
