"""
Security Module

Components:
- volume: ciphertext-handle commitments for net volumes (hash / cofhe)
- attestation: signed attestations over settlement + committed volumes (hmac / enclave)
"""

from .attestation import (
    AttestationSigner,
    EnclaveAttestor,
    HmacAttestor,
    create_attestation_signer,
)
from .volume import (
    CofheVolumeEncoder,
    HashCommitmentEncoder,
    VolumeEncoder,
    create_volume_encoder,
    normalize_security_zone,
    open_sealed_volume,
)

__all__ = [
    "AttestationSigner",
    "EnclaveAttestor",
    "HmacAttestor",
    "create_attestation_signer",
    "CofheVolumeEncoder",
    "HashCommitmentEncoder",
    "VolumeEncoder",
    "create_volume_encoder",
    "normalize_security_zone",
    "open_sealed_volume",
]
