"""
Settlement pricing.

Turns an oracle reference price plus a spread into the Q96 square-root price
used by the pool, and stamps the settlement with its deadline.

Precision boundary: `price_to_sqrt_price_x96` goes through double precision
(sqrt, then a 1e9 fixed-point step, then a floored 2**96 / 1e9 multiplier).
The result is reproducible on IEEE-754 platforms but is not an exact Q96
square root; low-order bits are lost at the 1e9 step.
"""

from __future__ import annotations

import math
from typing import Optional

from batchsettle.protocol.models import (
    BatchSettlement,
    NetFlow,
    PriceQuote,
    StrategyParams,
)

Q96 = 2 ** 96
BPS_DENOMINATOR = 10_000
MAX_SPREAD_BPS = 10_000
SETTLEMENT_WINDOW_SECONDS = 300

_SQRT_SCALE = 1e9
_Q96_PER_SCALE = math.floor(Q96 / _SQRT_SCALE)


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def price_to_sqrt_price_x96(price: float) -> int:
    scaled = math.floor(math.sqrt(price) * _SQRT_SCALE)
    return scaled * _Q96_PER_SCALE


class SettlementPricer:
    def __init__(self, default_spread_bps: int = 35):
        self._default_spread_bps = default_spread_bps

    @property
    def default_spread_bps(self) -> int:
        return self._default_spread_bps

    def spread_bps(self, params: Optional[StrategyParams] = None) -> int:
        params = params or StrategyParams()
        base = params.base_spread_bps
        if base is None:
            base = self._default_spread_bps
        skew = params.inventory_skew_bps or 0
        return clamp(base + skew, 0, MAX_SPREAD_BPS)

    def quote(self, oracle_price: float, params: Optional[StrategyParams] = None) -> PriceQuote:
        if not math.isfinite(oracle_price) or oracle_price <= 0:
            raise ValueError(f"oracle price must be positive, got {oracle_price!r}")

        spread = self.spread_bps(params)
        gross = oracle_price * (1 + spread / BPS_DENOMINATOR)
        return PriceQuote(
            oracle_price=oracle_price,
            spread_bps=spread,
            gross_price=gross,
            sqrt_price_x96=price_to_sqrt_price_x96(gross),
        )

    def settle(
        self,
        *,
        pool_id: str,
        batch_id: str,
        flow: NetFlow,
        quote: PriceQuote,
        timestamp: int,
    ) -> BatchSettlement:
        return BatchSettlement(
            pool_id=pool_id,
            batch_id=batch_id,
            sqrt_price_x96=quote.sqrt_price_x96,
            token0_flow=flow.token0,
            token1_flow=flow.token1,
            deadline=timestamp + SETTLEMENT_WINDOW_SECONDS,
        )
