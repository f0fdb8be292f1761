from .pyth import OraclePrice, PythPriceClient

__all__ = ["OraclePrice", "PythPriceClient"]
