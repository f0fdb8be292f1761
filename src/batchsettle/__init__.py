from .core.aggregator import aggregate_orders
from .core.pipeline import BatchPipeline, build_pipeline
from .core.pricer import SettlementPricer
from .core.settings import SettlementSettings, get_settings
from .protocol import (
    AttestationRecord,
    BatchRequest,
    BatchResult,
    BatchSettlement,
    CommittedVolume,
    NetFlow,
    SwapOrder,
)
from .security.attestation import AttestationSigner
from .security.volume import CofheVolumeEncoder, HashCommitmentEncoder, VolumeEncoder

__version__ = "0.1.0"

__all__ = [
    "aggregate_orders",
    "BatchPipeline",
    "build_pipeline",
    "SettlementPricer",
    "SettlementSettings",
    "get_settings",
    "AttestationRecord",
    "BatchRequest",
    "BatchResult",
    "BatchSettlement",
    "CommittedVolume",
    "NetFlow",
    "SwapOrder",
    "AttestationSigner",
    "CofheVolumeEncoder",
    "HashCommitmentEncoder",
    "VolumeEncoder",
]
