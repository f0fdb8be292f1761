from .base import MAX_UINT128, VolumeEncoder, check_magnitude, create_volume_encoder
from .cofhe import CofheVolumeEncoder, normalize_security_zone
from .hash_commitment import HashCommitmentEncoder, open_sealed_volume

__all__ = [
    "MAX_UINT128",
    "VolumeEncoder",
    "check_magnitude",
    "create_volume_encoder",
    "CofheVolumeEncoder",
    "normalize_security_zone",
    "HashCommitmentEncoder",
    "open_sealed_volume",
]
