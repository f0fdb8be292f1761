"""
Pyth Hermes price client.

Fetches the latest parsed price update for one feed over HTTP:

    GET {hermes}/v2/updates/price/latest?ids[]=<feed>&parsed=true

Prices and confidences arrive as integer strings with a shared exponent and
are scaled to floats here.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from batchsettle.protocol.errors import UpstreamUnavailable
from batchsettle.utils.timestamps import now_unix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OraclePrice:
    price: float
    confidence: float
    timestamp: int
    price_update_data: Optional[List[str]] = None

    @property
    def confidence_bps(self) -> Optional[int]:
        if self.price == 0:
            return None
        return round(self.confidence / abs(self.price) * 10_000)


class PythPriceClient:
    def __init__(
        self,
        hermes_url: str,
        feed_id: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._url = hermes_url.rstrip("/") + "/v2/updates/price/latest"
        self._feed_id = feed_id
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def feed_id(self) -> str:
        return self._feed_id

    def latest(self) -> OraclePrice:
        try:
            response = self._session.get(
                self._url,
                params={"ids[]": self._feed_id, "parsed": "true"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Pyth price request failed for feed %s: %s", self._feed_id, exc)
            raise UpstreamUnavailable("Pyth price feed unavailable", details={"feedId": self._feed_id}) from exc

        return self._decode(data)

    async def fetch(self) -> OraclePrice:
        """Awaitable form of latest(); the HTTP call runs in a worker thread."""
        return await asyncio.to_thread(self.latest)

    def _decode(self, data: Dict[str, Any]) -> OraclePrice:
        parsed = data.get("parsed") if isinstance(data, dict) else None
        if not parsed:
            raise UpstreamUnavailable("No Pyth price data available", details={"feedId": self._feed_id})

        info = parsed[0].get("price") or {}
        scale = 10.0 ** int(info.get("expo", 0))
        price = float(info.get("price", "0")) * scale
        confidence = float(info.get("conf", "0")) * scale
        if price <= 0:
            raise UpstreamUnavailable(
                "Pyth returned a non-positive price",
                details={"feedId": self._feed_id, "price": price},
            )

        binary = data.get("binary") or {}
        update_data = None
        if isinstance(binary.get("data"), list):
            update_data = [h if h.startswith("0x") else "0x" + h for h in binary["data"]]

        return OraclePrice(
            price=price,
            confidence=confidence,
            timestamp=int(info.get("publish_time") or now_unix()),
            price_update_data=update_data,
        )
