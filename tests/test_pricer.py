"""
Tests for settlement pricing.
"""

import math

import pytest

from batchsettle.core.pricer import (
    Q96,
    SETTLEMENT_WINDOW_SECONDS,
    SettlementPricer,
    clamp,
    price_to_sqrt_price_x96,
)
from batchsettle.protocol.models import NetFlow, StrategyParams

from factories import POOL_ID, TIMESTAMP


class TestClamp:
    def test_within_range(self):
        assert clamp(35, 0, 10_000) == 35

    def test_bounds(self):
        assert clamp(-1, 0, 10_000) == 0
        assert clamp(10_001, 0, 10_000) == 10_000

    def test_extreme_inputs_stay_in_range(self):
        pricer = SettlementPricer(default_spread_bps=35)
        for base in (0, 35, 10_000, -(10 ** 12), 10 ** 12):
            for skew in (-(10 ** 18), -5_000, -1, 0, 1, 5_000, 10 ** 18):
                spread = pricer.spread_bps(StrategyParams(base_spread_bps=base, inventory_skew_bps=skew))
                assert 0 <= spread <= 10_000


class TestSqrtPriceX96:
    def test_multiplier_is_floored(self):
        """2**96 / 1e9 is floored once, before multiplying."""
        assert price_to_sqrt_price_x96(1.0) == 1_000_000_000 * math.floor(Q96 / 1e9)

    def test_close_to_exact_q96(self):
        value = price_to_sqrt_price_x96(2007.0)
        exact = math.sqrt(2007.0) * Q96
        assert value == pytest.approx(exact, rel=1e-9)

    def test_monotonic(self):
        assert price_to_sqrt_price_x96(2000.0) < price_to_sqrt_price_x96(2007.0)


class TestSettlementPricer:
    def test_default_spread_applied(self):
        quote = SettlementPricer(default_spread_bps=35).quote(2000.0)
        assert quote.spread_bps == 35
        assert quote.gross_price == pytest.approx(2007.0)
        assert quote.sqrt_price_x96 == price_to_sqrt_price_x96(quote.gross_price)

    def test_params_override_default(self):
        quote = SettlementPricer(default_spread_bps=35).quote(
            1000.0, StrategyParams(base_spread_bps=100, inventory_skew_bps=50)
        )
        assert quote.spread_bps == 150
        assert quote.gross_price == pytest.approx(1015.0)

    def test_zero_base_spread_is_not_replaced_by_default(self):
        quote = SettlementPricer(default_spread_bps=35).quote(1000.0, StrategyParams(base_spread_bps=0))
        assert quote.spread_bps == 0
        assert quote.gross_price == 1000.0

    def test_negative_skew_clamps_to_zero(self):
        quote = SettlementPricer(default_spread_bps=35).quote(
            1000.0, StrategyParams(inventory_skew_bps=-5_000)
        )
        assert quote.spread_bps == 0

    @pytest.mark.parametrize("price", [0.0, -1.0, float("nan"), float("inf")])
    def test_rejects_non_positive_price(self, price):
        with pytest.raises(ValueError):
            SettlementPricer().quote(price)

    def test_settle_sets_deadline_and_flows(self):
        pricer = SettlementPricer()
        quote = pricer.quote(2000.0)
        settlement = pricer.settle(
            pool_id=POOL_ID,
            batch_id="0x01",
            flow=NetFlow(token0=10, token1=-10),
            quote=quote,
            timestamp=TIMESTAMP,
        )
        assert settlement.deadline == TIMESTAMP + SETTLEMENT_WINDOW_SECONDS == TIMESTAMP + 300
        assert settlement.sqrt_price_x96 == quote.sqrt_price_x96

        data = settlement.to_dict()
        assert data["token0Flow"] == "10"
        assert data["token1Flow"] == "-10"
        assert data["sqrtPriceX96"] == hex(quote.sqrt_price_x96)
        assert data["poolId"] == POOL_ID
