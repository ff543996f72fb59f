# poolarb/rpc.py
"""
JSON-RPC batch transport
Many logical calls go out as one HTTP POST; responses are re-associated by id
because servers do not guarantee array order.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import requests

from poolarb.exceptions import RpcError

logger = logging.getLogger(__name__)

RpcCall = Tuple[str, list]


@dataclass
class RpcResponse:
    """One entry of a batch response"""
    id: int
    result: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None


def eth_call(to: str, data: str) -> RpcCall:
    return ("eth_call", [{"to": to, "data": data}, "latest"])


class BatchRpcClient:
    """
    Minimal batch client over a persistent requests.Session.
    Transport failures propagate; no retries happen here.
    """

    def __init__(self, rpc_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def batch(self, calls: Sequence[RpcCall]) -> List[RpcResponse]:
        """
        Send calls as a single batch.
        Returns one RpcResponse per call, in request order.
        """
        if not calls:
            return []

        payload = [
            {"jsonrpc": "2.0", "id": i + 1, "method": method, "params": params}
            for i, (method, params) in enumerate(calls)
        ]

        resp = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
        resp.raise_for_status()

        try:
            body = resp.json()
        except ValueError as e:
            raise RpcError(f"Invalid JSON from RPC: {e}", method=calls[0][0])

        if not isinstance(body, list):
            # Some servers answer a rejected batch with one error object
            message = body.get("error") if isinstance(body, dict) else body
            raise RpcError(f"Expected batch response, got: {message}", method=calls[0][0])

        by_id = {}
        for entry in body:
            if isinstance(entry, dict) and isinstance(entry.get("id"), int):
                by_id[entry["id"]] = entry

        responses = []
        for request in payload:
            entry = by_id.get(request["id"])
            if entry is None:
                responses.append(RpcResponse(id=request["id"], error="missing response"))
                continue
            error = entry.get("error")
            if error is not None:
                message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                responses.append(RpcResponse(id=request["id"], error=message))
            else:
                responses.append(RpcResponse(id=request["id"], result=entry.get("result")))

        return responses
