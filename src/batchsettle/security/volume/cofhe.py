"""
Protocol-accurate ciphertext handles
------------------------------------

Builds the same `InEuint128` input struct an on-chain CoFHE verifier accepts:

- ctHash: keccak commitment over (value, sender, keccak(salt)) with the low
  16 bits replaced by type/zone metadata
- signature: secp256k1 signature over
  keccak(ctHash || utype || zone || sender || chainId), 65 bytes r||s||v, v in {27, 28}

The salt is a counter owned by the encoder instance. It starts at 0, is never
persisted, and advances exactly once per successful zone/magnitude check, so
two encodings of the same magnitude never share a ctHash within a process.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from eth_abi import encode
from eth_abi.packed import encode_packed
from eth_account import Account
from eth_utils import is_address, keccak, to_checksum_address

from batchsettle.protocol.enums import FheType
from batchsettle.protocol.errors import (
    ComputationFailure,
    InvalidConfiguration,
    InvalidSecurityZone,
)
from batchsettle.protocol.models import CommittedVolume

from .base import check_magnitude

logger = logging.getLogger(__name__)

_LOW_16_BITS = 0xFFFF
_MAX_UINT256 = (1 << 256) - 1


def normalize_security_zone(zone: int) -> int:
    """Map a signed zone (-128..127) onto its unsigned byte (0..255)."""
    if isinstance(zone, bool) or not isinstance(zone, int) or not -128 <= zone <= 127:
        raise InvalidSecurityZone(zone)
    return (zone + 256) % 256


def handle_metadata(utype: int, zone_u8: int, is_trivial: bool = False) -> int:
    type_byte = (int(is_trivial) << 7) | (utype & 0x7F)
    return (type_byte << 8) | zone_u8


def compute_ct_hash(
    magnitude: int,
    sender: str,
    salt: int,
    utype: int,
    zone_u8: int,
    is_trivial: bool = False,
) -> int:
    salt_hash = keccak(encode(["uint256"], [salt]))
    pre_hash = keccak(encode(["uint256", "address", "bytes32"], [magnitude, sender, salt_hash]))
    value = int.from_bytes(pre_hash, "big") & (_MAX_UINT256 ^ _LOW_16_BITS)
    return value | handle_metadata(utype, zone_u8, is_trivial)


def signing_digest(ct_hash: int, utype: int, zone_u8: int, sender: str, chain_id: int) -> bytes:
    packed = encode_packed(
        ["uint256", "uint8", "uint8", "address", "uint256"],
        [ct_hash, utype, zone_u8, sender, chain_id],
    )
    return keccak(packed)


class CofheVolumeEncoder:
    """
    Production encoder producing signed ciphertext handles.

    Usage:
        encoder = CofheVolumeEncoder(
            private_key="0x...",
            sender="0x...",
            chain_id=11155111,
        )
        handle = encoder.encode(10**17)
    """

    def __init__(
        self,
        private_key: str,
        sender: str,
        chain_id: int,
        security_zone: int = 0,
        utype: int = FheType.UINT128,
    ):
        self._zone = normalize_security_zone(security_zone)

        if not isinstance(sender, str) or not is_address(sender):
            raise InvalidConfiguration(f"sender {sender!r} is not an EVM address")
        if chain_id < 0 or chain_id > _MAX_UINT256:
            raise InvalidConfiguration(f"chain id {chain_id} outside uint256")
        if not 0 <= int(utype) <= 0x7F:
            raise InvalidConfiguration(f"utype {utype} does not fit in 7 bits")
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise InvalidConfiguration("signer private key is not a valid secp256k1 key") from exc

        self._sender = to_checksum_address(sender)
        self._chain_id = chain_id
        self._utype = int(utype)
        self._salt = 0
        self._lock = threading.Lock()

    @property
    def signer_address(self) -> str:
        return self._account.address

    @property
    def sender(self) -> str:
        return self._sender

    @property
    def salt(self) -> int:
        """Salt the next encode call will use."""
        with self._lock:
            return self._salt

    def _next_salt(self) -> int:
        with self._lock:
            salt = self._salt
            self._salt += 1
            return salt

    def encode(self, magnitude: int, *, security_zone: Optional[int] = None) -> CommittedVolume:
        zone_u8 = self._zone if security_zone is None else normalize_security_zone(security_zone)
        check_magnitude(magnitude)

        salt = self._next_salt()
        ct_hash = compute_ct_hash(magnitude, self._sender, salt, self._utype, zone_u8)
        digest = signing_digest(ct_hash, self._utype, zone_u8, self._sender, self._chain_id)

        try:
            signed = self._account.unsafe_sign_hash(digest)
        except Exception as exc:
            logger.error("Signing ciphertext handle failed (salt=%d): %s", salt, exc)
            raise ComputationFailure("ciphertext handle signing failed") from exc

        return CommittedVolume(
            ct_hash=ct_hash,
            security_zone=zone_u8,
            utype=self._utype,
            signature=bytes(signed.signature),
        )
