"""
Request validation for POST /batch.

The wire shape is camelCase JSON. Pydantic models check shape and ranges;
`parse_batch_request` converts a validated body into protocol dataclasses and
reports every failure as a single SchemaViolation.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import SchemaViolation
from .models import (
    BatchRequest,
    RequestMetadata,
    SealedVolumes,
    StrategyParams,
    SwapOrder,
)

HEX = r"^0x[0-9a-fA-F]+$"
HEX_ADDRESS = r"^0x[0-9a-fA-F]{40}$"
HEX_BYTES32 = r"^0x[0-9a-fA-F]{64}$"
SIGNED_DECIMAL = r"^-?[0-9]+$"
# int256 in decimal, with sign
MAX_AMOUNT_LENGTH = 78


class OrderSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sender: str = Field(pattern=HEX_ADDRESS)
    zeroForOne: StrictBool
    amountSpecified: str = Field(pattern=SIGNED_DECIMAL, max_length=MAX_AMOUNT_LENGTH)
    tokenIn: str = Field(pattern=HEX_ADDRESS)
    tokenOut: str = Field(pattern=HEX_ADDRESS)


class StrategyParamsSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    baseSpreadBps: Optional[StrictInt] = Field(default=None, ge=0, le=10_000)
    inventorySkewBps: Optional[StrictInt] = Field(default=None, ge=-5_000, le=5_000)


class MetadataSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    oraclePrice: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    timestamp: Optional[StrictInt] = Field(default=None, gt=0)
    pythConfidenceBps: Optional[StrictInt] = None

    @field_validator("oraclePrice", mode="before")
    @classmethod
    def _price_is_number(cls, v: Any) -> Any:
        # JSON numbers only; no booleans or numeric strings
        if v is not None and (isinstance(v, bool) or not isinstance(v, (int, float))):
            raise ValueError("oraclePrice must be a number")
        return v


class BatchSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    poolId: str = Field(pattern=HEX_BYTES32)
    batchId: str = Field(pattern=HEX)
    strategyParams: Optional[StrategyParamsSchema] = None
    metadata: Optional[MetadataSchema] = None
    orders: Optional[List[OrderSchema]] = Field(default=None, min_length=1)
    encryptedToken0Volume: Optional[str] = Field(default=None, min_length=4)
    encryptedToken1Volume: Optional[str] = Field(default=None, min_length=4)

    @model_validator(mode="after")
    def _one_volume_source(self) -> "BatchSchema":
        sealed = (self.encryptedToken0Volume, self.encryptedToken1Volume)
        has_sealed = any(v is not None for v in sealed)
        if has_sealed and not all(v is not None for v in sealed):
            raise ValueError("encryptedToken0Volume and encryptedToken1Volume must be supplied together")
        if self.orders is None and not has_sealed:
            raise ValueError("either orders or encrypted volumes are required")
        if self.orders is not None and has_sealed:
            raise ValueError("orders and encrypted volumes are mutually exclusive")
        return self

    def to_request(self) -> BatchRequest:
        params = self.strategyParams or StrategyParamsSchema()
        meta = self.metadata or MetadataSchema()
        sealed = None
        if self.encryptedToken0Volume is not None:
            sealed = SealedVolumes(
                token0=self.encryptedToken0Volume,
                token1=self.encryptedToken1Volume,
            )
        orders = tuple(
            SwapOrder(
                sender=o.sender,
                zero_for_one=o.zeroForOne,
                amount_specified=int(o.amountSpecified),
                token_in=o.tokenIn,
                token_out=o.tokenOut,
            )
            for o in (self.orders or [])
        )
        return BatchRequest(
            pool_id=self.poolId,
            batch_id=self.batchId,
            orders=orders,
            sealed_volumes=sealed,
            strategy_params=StrategyParams(
                base_spread_bps=params.baseSpreadBps,
                inventory_skew_bps=params.inventorySkewBps,
            ),
            metadata=RequestMetadata(
                oracle_price=meta.oraclePrice,
                timestamp=meta.timestamp,
                confidence_bps=meta.pythConfidenceBps,
            ),
        )


def _issues(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"path": [str(p) for p in err["loc"]], "message": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


def parse_batch_request(data: Any) -> BatchRequest:
    if not isinstance(data, dict):
        raise SchemaViolation(
            "Invalid payload",
            issues=[{"path": [], "message": "Request body must be a JSON object", "type": "object_type"}],
        )
    try:
        schema = BatchSchema.model_validate(data)
    except PydanticValidationError as exc:
        raise SchemaViolation("Invalid payload", issues=_issues(exc)) from exc
    return schema.to_request()
