"""
Attestation signing.

An attestation binds a BatchSettlement and its two committed volumes to a
signing identity. Two schemes exist and one is fixed when the signer is built:

- HMAC: symmetric HMAC-SHA256 over the canonical settlement JSON followed by
  the raw 32-byte ctHash of token0 and token1.
- ENCLAVE: EIP-191 personal-message signature over a JSON document holding the
  settlement and both ctHashes, ABI-encoded together with the enclave
  measurements (mrEnclave, mrSigner) so a verifier can check both the key and
  the code identity.

CRITICAL INVARIANTS:
1. The scheme tag and the variant always agree; there is no call-site swapping
2. A production signer never runs on the development HMAC secret
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Optional, Union, TYPE_CHECKING

from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_defunct

from batchsettle.protocol.enums import AttestationScheme
from batchsettle.protocol.errors import ComputationFailure, InvalidConfiguration
from batchsettle.protocol.models import (
    AttestationRecord,
    BatchSettlement,
    CommittedVolumePair,
)
from batchsettle.utils.json import canonical_bytes, canonical_dumps

if TYPE_CHECKING:
    from batchsettle.core.settings import AttestationSettings

logger = logging.getLogger(__name__)

# Not a secret. Only used when no ATTESTATION_SECRET is configured outside production.
DEV_ATTESTATION_SECRET = "local-dev-mnemonic"

ENCLAVE_PAYLOAD_TYPES = ["string", "bytes32", "bytes", "address", "bytes32", "bytes32"]


def _bytes32(value: str, name: str) -> bytes:
    raw = value[2:] if value.startswith("0x") else value
    try:
        data = bytes.fromhex(raw)
    except ValueError as exc:
        raise InvalidConfiguration(f"{name} must be hex") from exc
    if len(data) != 32:
        raise InvalidConfiguration(f"{name} must be 32 bytes")
    return data


# ===========================================================================
# HMAC variant
# ===========================================================================


class HmacAttestor:
    """
    Symmetric attestation.

    If no secret is given the fixed development secret is used and a warning
    is logged; with production=True a missing secret is refused.
    """

    def __init__(self, secret: Optional[str], *, production: bool = False):
        if production and (not secret or secret == DEV_ATTESTATION_SECRET):
            raise InvalidConfiguration(
                "ATTESTATION_SECRET is required in production; refusing the development secret"
            )
        if not secret:
            logger.warning("No attestation secret configured; using the development secret")
            secret = DEV_ATTESTATION_SECRET
        self._key = secret.encode("utf-8")
        self._uses_dev_secret = secret == DEV_ATTESTATION_SECRET

    @property
    def uses_dev_secret(self) -> bool:
        return self._uses_dev_secret

    def digest(self, settlement: BatchSettlement, volumes: CommittedVolumePair) -> bytes:
        mac = hmac.new(self._key, digestmod=hashlib.sha256)
        mac.update(canonical_bytes(settlement.to_dict()))
        mac.update(volumes.token0.ct_hash_bytes)
        mac.update(volumes.token1.ct_hash_bytes)
        return mac.digest()


# ===========================================================================
# Enclave variant
# ===========================================================================


class EnclaveAttestor:
    """
    Enclave-style attestation signed with a secp256k1 key.

    The payload is abi.encode(string message, bytes32 messageHash,
    bytes signature, address signer, bytes32 mrEnclave, bytes32 mrSigner).
    """

    def __init__(self, private_key: str, mr_enclave: str, mr_signer: str):
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise InvalidConfiguration("attestation signer key is not a valid secp256k1 key") from exc
        self._mr_enclave = _bytes32(mr_enclave, "mrEnclave")
        self._mr_signer = _bytes32(mr_signer, "mrSigner")

    @property
    def address(self) -> str:
        return self._account.address

    @staticmethod
    def build_message(settlement: BatchSettlement, volumes: CommittedVolumePair) -> str:
        return canonical_dumps(
            {
                "settlement": settlement.to_dict(),
                "sealed": {
                    "token0": volumes.token0.ct_hash_hex,
                    "token1": volumes.token1.ct_hash_hex,
                },
            }
        )

    def attest(self, settlement: BatchSettlement, volumes: CommittedVolumePair) -> AttestationRecord:
        message = self.build_message(settlement, volumes)
        try:
            signed = self._account.sign_message(encode_defunct(text=message))
        except Exception as exc:
            raise ComputationFailure("enclave attestation signing failed") from exc

        message_hash = bytes(signed.message_hash)
        signature = bytes(signed.signature)
        payload = encode(
            ENCLAVE_PAYLOAD_TYPES,
            [
                message,
                message_hash,
                signature,
                self._account.address,
                self._mr_enclave,
                self._mr_signer,
            ],
        )
        return AttestationRecord(
            scheme=AttestationScheme.ENCLAVE,
            payload=payload,
            message=message,
            message_hash=message_hash,
            signature=signature,
            signer=self._account.address,
        )


# ===========================================================================
# Tagged signer
# ===========================================================================


class AttestationSigner:
    """
    Attestation signer holding exactly one scheme variant.

    Usage:
        signer = AttestationSigner.with_hmac("secret")
        signer = AttestationSigner.with_enclave(key, mr_enclave, mr_signer)
        record = signer.sign(settlement, volumes)
    """

    def __init__(self, scheme: AttestationScheme, variant: Union[HmacAttestor, EnclaveAttestor]):
        expected = HmacAttestor if scheme is AttestationScheme.HMAC else EnclaveAttestor
        if not isinstance(variant, expected):
            raise InvalidConfiguration(
                f"{scheme.value} attestation requires {expected.__name__}, got {type(variant).__name__}"
            )
        self._scheme = scheme
        self._variant = variant

    @classmethod
    def with_hmac(cls, secret: Optional[str], *, production: bool = False) -> "AttestationSigner":
        return cls(AttestationScheme.HMAC, HmacAttestor(secret, production=production))

    @classmethod
    def with_enclave(cls, private_key: str, mr_enclave: str, mr_signer: str) -> "AttestationSigner":
        return cls(AttestationScheme.ENCLAVE, EnclaveAttestor(private_key, mr_enclave, mr_signer))

    @property
    def scheme(self) -> AttestationScheme:
        return self._scheme

    def sign(self, settlement: BatchSettlement, volumes: CommittedVolumePair) -> AttestationRecord:
        if self._scheme is AttestationScheme.HMAC:
            digest = self._variant.digest(settlement, volumes)
            return AttestationRecord(scheme=AttestationScheme.HMAC, payload=digest)
        return self._variant.attest(settlement, volumes)


def create_attestation_signer(
    settings: "AttestationSettings",
    *,
    production: bool = False,
) -> AttestationSigner:
    """
    Factory configuring the attestation scheme.

    Environment variables:
        ATTESTATION_SCHEME=hmac|enclave
        ATTESTATION_SECRET=secret                (hmac)
        ATTESTATION_SIGNER_PRIVATE_KEY=0x...     (enclave)
        MR_ENCLAVE_PUBLIC=0x... / MR_SIGNER_PUBLIC=0x...   (enclave)
    """
    if settings.scheme is AttestationScheme.HMAC:
        return AttestationSigner.with_hmac(settings.secret, production=production)

    missing = [
        name
        for name, value in (
            ("ATTESTATION_SIGNER_PRIVATE_KEY", settings.signer_private_key),
            ("MR_ENCLAVE_PUBLIC", settings.mr_enclave),
            ("MR_SIGNER_PUBLIC", settings.mr_signer),
        )
        if not value
    ]
    if missing:
        raise InvalidConfiguration(
            f"enclave attestation requires {', '.join(missing)}",
            details={"missing": missing},
        )
    return AttestationSigner.with_enclave(
        settings.signer_private_key,
        settings.mr_enclave,
        settings.mr_signer,
    )
