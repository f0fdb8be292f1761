# FILE: src/batchsettle/protocol/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .enums import AttestationScheme


def _hex(data: bytes) -> str:
    return "0x" + data.hex()


def _hex32(value: int) -> str:
    return _hex(value.to_bytes(32, "big"))


# -------------------------
# ORDERS & FLOWS
# -------------------------

@dataclass(frozen=True)
class SwapOrder:
    sender: str
    zero_for_one: bool
    amount_specified: int
    token_in: str
    token_out: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "zeroForOne": self.zero_for_one,
            "amountSpecified": str(self.amount_specified),
            "tokenIn": self.token_in,
            "tokenOut": self.token_out,
        }


@dataclass(frozen=True)
class NetFlow:
    token0: int = 0
    token1: int = 0

    @property
    def magnitudes(self) -> Tuple[int, int]:
        return abs(self.token0), abs(self.token1)


@dataclass(frozen=True)
class StrategyParams:
    base_spread_bps: Optional[int] = None
    inventory_skew_bps: Optional[int] = None


@dataclass(frozen=True)
class RequestMetadata:
    """Oracle hints supplied by the caller. Every field is optional."""

    oracle_price: Optional[float] = None
    timestamp: Optional[int] = None
    confidence_bps: Optional[int] = None


@dataclass(frozen=True)
class SealedVolumes:
    token0: str
    token1: str


@dataclass(frozen=True)
class BatchRequest:
    pool_id: str
    batch_id: str
    orders: Tuple[SwapOrder, ...] = ()
    sealed_volumes: Optional[SealedVolumes] = None
    strategy_params: StrategyParams = field(default_factory=StrategyParams)
    metadata: RequestMetadata = field(default_factory=RequestMetadata)


@dataclass(frozen=True)
class BatchMetadata:
    oracle_price: float
    timestamp: int
    confidence_bps: Optional[int] = None
    price_update_data: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "oraclePrice": self.oracle_price,
            "timestamp": self.timestamp,
            "pythConfidenceBps": self.confidence_bps,
            "priceUpdateData": self.price_update_data,
        }


# -------------------------
# SETTLEMENT
# -------------------------

@dataclass(frozen=True)
class PriceQuote:
    oracle_price: float
    spread_bps: int
    gross_price: float
    sqrt_price_x96: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "oraclePrice": self.oracle_price,
            "spreadBps": self.spread_bps,
            "grossPrice": self.gross_price,
            "sqrtPriceX96": hex(self.sqrt_price_x96),
        }


@dataclass(frozen=True)
class BatchSettlement:
    pool_id: str
    batch_id: str
    sqrt_price_x96: int
    token0_flow: int
    token1_flow: int
    deadline: int

    def to_dict(self) -> Dict[str, Any]:
        # flows travel as decimal strings so no precision is lost in JSON
        return {
            "poolId": self.pool_id,
            "batchId": self.batch_id,
            "sqrtPriceX96": hex(self.sqrt_price_x96),
            "token0Flow": str(self.token0_flow),
            "token1Flow": str(self.token1_flow),
            "deadline": self.deadline,
        }


# -------------------------
# COMMITTED VOLUMES
# -------------------------

@dataclass(frozen=True)
class CommittedVolume:
    """
    Ciphertext handle for one side of a batch.

    Attributes:
        ct_hash: 256-bit commitment with type/zone metadata in the low 16 bits
        security_zone: Zone as an unsigned byte (0..255)
        utype: Plaintext type tag
        signature: Binding signature (65 bytes in protocol mode, 32 in hash mode)
    """
    ct_hash: int
    security_zone: int
    utype: int
    signature: bytes

    @property
    def ct_hash_bytes(self) -> bytes:
        return self.ct_hash.to_bytes(32, "big")

    @property
    def ct_hash_hex(self) -> str:
        return _hex32(self.ct_hash)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ctHash": self.ct_hash_hex,
            "securityZone": self.security_zone,
            "utype": self.utype,
            "signature": _hex(self.signature),
        }


@dataclass(frozen=True)
class CommittedVolumePair:
    token0: CommittedVolume
    token1: CommittedVolume

    def to_dict(self) -> Dict[str, Any]:
        return {"token0": self.token0.to_dict(), "token1": self.token1.to_dict()}


# -------------------------
# ATTESTATION
# -------------------------

@dataclass(frozen=True)
class AttestationRecord:
    scheme: AttestationScheme
    payload: bytes
    message: Optional[str] = None
    message_hash: Optional[bytes] = None
    signature: Optional[bytes] = None
    signer: Optional[str] = None

    @property
    def payload_hex(self) -> str:
        return _hex(self.payload)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "scheme": self.scheme.value,
            "payload": self.payload_hex,
        }
        if self.scheme is AttestationScheme.ENCLAVE:
            data.update(
                {
                    "message": self.message,
                    "messageHash": _hex(self.message_hash or b""),
                    "signature": _hex(self.signature or b""),
                    "signer": self.signer,
                }
            )
        return data


@dataclass(frozen=True)
class BatchResult:
    settlement: BatchSettlement
    volumes: CommittedVolumePair
    attestation: AttestationRecord
    metadata: BatchMetadata
    quote: PriceQuote
    flow: NetFlow

    def to_response(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "poolId": self.settlement.pool_id,
            "settlement": self.settlement.to_dict(),
            "encryptedVolumes": self.volumes.to_dict(),
            "attestation": self.attestation.payload_hex,
            "attestationScheme": self.attestation.scheme.value,
            "pricing": {
                "spreadBps": self.quote.spread_bps,
                "grossPrice": self.quote.gross_price,
            },
            "metadata": self.metadata.to_dict(),
        }
