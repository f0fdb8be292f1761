from .aggregator import aggregate_orders
from .pipeline import BatchPipeline, build_pipeline
from .pricer import SettlementPricer, clamp, price_to_sqrt_price_x96
from .settings import SettlementSettings, get_settings

__all__ = [
    "aggregate_orders",
    "BatchPipeline",
    "build_pipeline",
    "SettlementPricer",
    "clamp",
    "price_to_sqrt_price_x96",
    "SettlementSettings",
    "get_settings",
]
