from .enums import AttestationScheme, EncoderMode, Environment, ErrorCode, FheType
from .errors import (
    ComputationFailure,
    InvalidConfiguration,
    InvalidSecurityZone,
    SchemaViolation,
    SettlementError,
    UpstreamUnavailable,
)
from .models import (
    AttestationRecord,
    BatchMetadata,
    BatchRequest,
    BatchResult,
    BatchSettlement,
    CommittedVolume,
    CommittedVolumePair,
    NetFlow,
    PriceQuote,
    RequestMetadata,
    SealedVolumes,
    StrategyParams,
    SwapOrder,
)

__all__ = [
    "AttestationScheme",
    "EncoderMode",
    "Environment",
    "ErrorCode",
    "FheType",
    "ComputationFailure",
    "InvalidConfiguration",
    "InvalidSecurityZone",
    "SchemaViolation",
    "SettlementError",
    "UpstreamUnavailable",
    "AttestationRecord",
    "BatchMetadata",
    "BatchRequest",
    "BatchResult",
    "BatchSettlement",
    "CommittedVolume",
    "CommittedVolumePair",
    "NetFlow",
    "PriceQuote",
    "RequestMetadata",
    "SealedVolumes",
    "StrategyParams",
    "SwapOrder",
]
