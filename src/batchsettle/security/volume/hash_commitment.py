from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
from typing import Optional

from batchsettle.protocol.enums import FheType
from batchsettle.protocol.errors import InvalidConfiguration, SchemaViolation
from batchsettle.protocol.models import CommittedVolume

from .base import check_magnitude

# Sealed volumes open to values below this bound so local runs stay in range.
SEALED_VOLUME_MODULUS = 10 ** 18


class HashCommitmentEncoder:
    """
    Deterministic commitment for local and mock deployments.
    No encryption: the magnitude is hashed and the hash is HMAC-bound
    to a shared secret.

    Suitable for:
    - Local development
    - Tests against a mock verifier
    """

    def __init__(self, shared_secret: str):
        if not shared_secret:
            raise InvalidConfiguration("shared secret is required for hash commitments")
        self._key = shared_secret.encode("utf-8")

    def encode(self, magnitude: int, *, security_zone: Optional[int] = None) -> CommittedVolume:
        check_magnitude(magnitude)
        if security_zone not in (None, 0):
            raise InvalidConfiguration("hash commitments only support security zone 0")

        ct_hash = hashlib.sha256(magnitude.to_bytes(32, "big")).digest()
        # signature binds the uint128 encoding the sealing service uses
        signature = hmac.new(self._key, magnitude.to_bytes(16, "big"), hashlib.sha256).digest()

        return CommittedVolume(
            ct_hash=int.from_bytes(ct_hash, "big"),
            security_zone=0,
            utype=int(FheType.UINT128),
            signature=signature,
        )


def _sealed_payload(ciphertext: str) -> bytes:
    try:
        if ciphertext.startswith("0x") and len(ciphertext) > 2:
            return bytes.fromhex(ciphertext[2:])
        return base64.b64decode(ciphertext, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise SchemaViolation(
            "Invalid payload",
            issues=[{"path": ["encryptedVolume"], "message": "not hex or base64", "type": "encoding"}],
        ) from exc


def open_sealed_volume(ciphertext: str, shared_secret: str) -> int:
    """
    Open a pre-aggregated sealed volume produced by the mock sealing service.

    The payload is 0x-hex or base64; its value is the HMAC-SHA256 of the
    payload under the shared secret, reduced modulo 10**18.
    """
    payload = _sealed_payload(ciphertext)
    derived = hmac.new(shared_secret.encode("utf-8"), payload, hashlib.sha256).digest()
    return int.from_bytes(derived, "big") % SEALED_VOLUME_MODULUS
