from __future__ import annotations

from typing import Optional, Protocol, TYPE_CHECKING

from batchsettle.protocol.enums import EncoderMode
from batchsettle.protocol.errors import InvalidConfiguration
from batchsettle.protocol.models import CommittedVolume

if TYPE_CHECKING:
    from batchsettle.core.settings import EncoderSettings

MAX_UINT128 = (1 << 128) - 1


class VolumeEncoder(Protocol):
    """Commits to the absolute value of one side of a net flow."""

    def encode(self, magnitude: int, *, security_zone: Optional[int] = None) -> CommittedVolume:
        ...


def check_magnitude(magnitude: int) -> None:
    if isinstance(magnitude, bool) or not isinstance(magnitude, int):
        raise InvalidConfiguration(f"magnitude must be an integer, got {type(magnitude).__name__}")
    if magnitude < 0 or magnitude > MAX_UINT128:
        raise InvalidConfiguration(
            "magnitude outside the uint128 range",
            details={"magnitude": str(magnitude)},
        )


def create_volume_encoder(settings: "EncoderSettings") -> VolumeEncoder:
    """
    Factory selecting the commitment scheme for the deployment.

    Environment variables:
        VOLUME_ENCODER_MODE=hash|cofhe
        FHENIX_SHARED_SECRET=secret          (hash)
        COFHE_SIGNER_PRIVATE_KEY=0x...       (cofhe)
        SWAP_HANDLER_ADDRESS=0x...           (cofhe)
        COFHE_SECURITY_ZONE=-128..127        (cofhe)
        CHAIN_ID=11155111                    (cofhe)
    """
    from .cofhe import CofheVolumeEncoder
    from .hash_commitment import HashCommitmentEncoder

    if settings.mode is EncoderMode.HASH:
        if not settings.shared_secret:
            raise InvalidConfiguration("FHENIX_SHARED_SECRET is required for hash mode")
        return HashCommitmentEncoder(settings.shared_secret)

    if not settings.signer_private_key:
        raise InvalidConfiguration("COFHE_SIGNER_PRIVATE_KEY is required for cofhe mode")
    if not settings.sender:
        raise InvalidConfiguration("SWAP_HANDLER_ADDRESS is required for cofhe mode")

    return CofheVolumeEncoder(
        private_key=settings.signer_private_key,
        sender=settings.sender,
        chain_id=settings.chain_id,
        security_zone=settings.security_zone,
    )
