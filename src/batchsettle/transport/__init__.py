from .http import SettlementClient, generate_batch_id

__all__ = ["SettlementClient", "generate_batch_id"]
