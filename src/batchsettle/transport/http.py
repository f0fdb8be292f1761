"""
HTTP client for the settlement executor.

- Sends batch requests as JSON to POST /batch
- Expects {"ok": true, ...} on success
- Used by sequencers that collect orders and hand them off per batch

No retries: a failed request surfaces to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import requests
from eth_abi.packed import encode_packed
from eth_utils import keccak

from batchsettle.protocol.errors import ComputationFailure, UpstreamUnavailable
from batchsettle.protocol.models import SwapOrder
from batchsettle.utils.json import json_dumps
from batchsettle.utils.timestamps import now_unix

logger = logging.getLogger(__name__)


def generate_batch_id(pool_id: str, now: Optional[int] = None) -> str:
    """keccak256(pool_id || uint256(now)), 0x-prefixed."""
    if now is None:
        now = now_unix()
    pool_bytes = bytes.fromhex(pool_id[2:] if pool_id.startswith("0x") else pool_id)
    if len(pool_bytes) != 32:
        raise ValueError("pool id must be 32 bytes")
    return "0x" + keccak(encode_packed(["bytes32", "uint256"], [pool_bytes, now])).hex()


class SettlementClient:
    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._url = base_url.rstrip("/") + "/batch"
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    def build_payload(
        self,
        *,
        pool_id: str,
        batch_id: str,
        orders: Sequence[SwapOrder],
        oracle_price: Optional[float] = None,
        timestamp: Optional[int] = None,
    ) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"timestamp": timestamp if timestamp is not None else now_unix()}
        if oracle_price is not None:
            metadata["oraclePrice"] = oracle_price
        return {
            "poolId": pool_id,
            "batchId": batch_id,
            "metadata": metadata,
            "orders": [order.to_dict() for order in orders],
        }

    def request_settlement(
        self,
        *,
        pool_id: str,
        batch_id: str,
        orders: Sequence[SwapOrder],
        oracle_price: Optional[float] = None,
        timestamp: Optional[int] = None,
    ) -> Dict[str, Any]:
        payload = self.build_payload(
            pool_id=pool_id,
            batch_id=batch_id,
            orders=orders,
            oracle_price=oracle_price,
            timestamp=timestamp,
        )
        return self.submit(payload)

    def submit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            response = self._session.post(
                self._url,
                data=json_dumps(payload),
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("Settlement request to %s failed: %s", self._url, exc)
            raise UpstreamUnavailable("settlement service unreachable") from exc

        if not response.ok:
            logger.error(
                "Settlement request failed: status=%s reason=%s body=%s",
                response.status_code,
                response.reason,
                response.text,
            )
            raise UpstreamUnavailable(
                f"Settlement request failed ({response.status_code})",
                details={"status": response.status_code},
            )

        result = response.json()
        if not result.get("ok"):
            logger.error("Settlement response flagged error: %s", result)
            raise ComputationFailure("settlement service returned error", details={"response": result})
        return result
