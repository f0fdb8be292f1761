"""
Central configuration for the batch settlement executor.

This module provides a single, typed configuration object that reads from
environment variables (12-factor style) using pydantic-settings.

Usage:

    from batchsettle.core.settings import get_settings

    settings = get_settings()
    if settings.encoder.mode is EncoderMode.COFHE:
        ...

Values are only shape-checked here. Whether a combination is usable (a key
present for the selected scheme, a zone in range) is decided by the component
factories, which raise InvalidConfiguration.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from batchsettle.protocol.enums import AttestationScheme, EncoderMode, Environment

_HEX32 = re.compile(r"^0x[0-9a-fA-F]{64}$")
_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")

_CONFIG = SettingsConfigDict(populate_by_name=True, extra="ignore")


def _check(pattern: re.Pattern, v: Optional[str], what: str) -> Optional[str]:
    if v is None or v == "":
        return None
    if not pattern.match(v):
        raise ValueError(f"Expected {what}")
    return v


class RuntimeSettings(BaseSettings):
    model_config = _CONFIG

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias="BATCHSETTLE_ENV",
        description="'development' or 'production'. Production refuses dev fallbacks.",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias="BATCHSETTLE_LOG_LEVEL",
        description="Root log level (DEBUG/INFO/WARNING/ERROR).",
    )

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION


class GatewaySettings(BaseSettings):
    """
    HTTP gateway settings (bind address, optional bearer key, public metadata).
    """

    model_config = _CONFIG

    host: str = Field(default="0.0.0.0", validation_alias="BATCHSETTLE_HTTP_HOST")
    port: int = Field(default=8080, gt=0, validation_alias="BATCHSETTLE_HTTP_PORT")
    api_key: Optional[str] = Field(
        default=None,
        validation_alias="BATCHSETTLE_API_KEY",
        description="When set, POST /batch requires 'Authorization: Bearer <key>'.",
    )
    chain_rpc_url: Optional[str] = Field(default=None, validation_alias="CHAIN_RPC_URL_PUBLIC")
    launchpad_address: Optional[str] = Field(default=None, validation_alias="NAJ_LAUNCHPAD_ADDRESS_PUBLIC")
    hook_address: Optional[str] = Field(default=None, validation_alias="NAJ_HOOK_ADDRESS_PUBLIC")

    def public_metadata(self) -> dict:
        return {
            "chainRpcUrl": self.chain_rpc_url,
            "launchpadAddress": self.launchpad_address,
            "hookAddress": self.hook_address,
        }


class StrategySettings(BaseSettings):
    model_config = _CONFIG

    spread_bps: int = Field(
        default=35,
        ge=0,
        le=10_000,
        validation_alias="STRATEGY_SPREAD_BPS",
        description="Default base spread applied when a batch carries none.",
    )


class OracleSettings(BaseSettings):
    model_config = _CONFIG

    hermes_url: Optional[str] = Field(default=None, validation_alias="PYTH_HERMES_URL")
    feed_id: Optional[str] = Field(default=None, validation_alias="PYTH_FEED_ID")
    timeout: float = Field(default=10.0, gt=0, validation_alias="PYTH_TIMEOUT_SECONDS")

    @field_validator("feed_id")
    def _validate_feed_id(cls, v: Optional[str]) -> Optional[str]:
        return _check(_HEX32, v, "32-byte hex feed id")

    @property
    def enabled(self) -> bool:
        return bool(self.hermes_url and self.feed_id)


class EncoderSettings(BaseSettings):
    model_config = _CONFIG

    mode: EncoderMode = Field(default=EncoderMode.HASH, validation_alias="VOLUME_ENCODER_MODE")
    shared_secret: Optional[str] = Field(default=None, validation_alias="FHENIX_SHARED_SECRET")
    signer_private_key: Optional[str] = Field(default=None, validation_alias="COFHE_SIGNER_PRIVATE_KEY")
    security_zone: int = Field(default=0, validation_alias="COFHE_SECURITY_ZONE")
    sender: Optional[str] = Field(
        default=None,
        validation_alias="SWAP_HANDLER_ADDRESS",
        description="Contract authorised to consume the ciphertext handles.",
    )
    chain_id: int = Field(default=11155111, ge=0, validation_alias="CHAIN_ID")

    @field_validator("signer_private_key")
    def _validate_key(cls, v: Optional[str]) -> Optional[str]:
        return _check(_HEX32, v, "32-byte hex private key")

    @field_validator("sender")
    def _validate_sender(cls, v: Optional[str]) -> Optional[str]:
        return _check(_ADDRESS, v, "EVM address")


class AttestationSettings(BaseSettings):
    model_config = _CONFIG

    scheme: AttestationScheme = Field(default=AttestationScheme.HMAC, validation_alias="ATTESTATION_SCHEME")
    secret: Optional[str] = Field(default=None, validation_alias="ATTESTATION_SECRET")
    signer_private_key: Optional[str] = Field(default=None, validation_alias="ATTESTATION_SIGNER_PRIVATE_KEY")
    mr_enclave: Optional[str] = Field(default=None, validation_alias="MR_ENCLAVE_PUBLIC")
    mr_signer: Optional[str] = Field(default=None, validation_alias="MR_SIGNER_PUBLIC")

    @field_validator("signer_private_key", "mr_enclave", "mr_signer")
    def _validate_hex32(cls, v: Optional[str]) -> Optional[str]:
        return _check(_HEX32, v, "32-byte hex value")


class SettlementSettings(BaseSettings):
    """
    Root configuration object.

    Aggregates:
      - Runtime
      - Gateway
      - Strategy
      - Oracle
      - Encoder
      - Attestation
    """

    model_config = _CONFIG

    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    strategy: StrategySettings = Field(default_factory=StrategySettings)
    oracle: OracleSettings = Field(default_factory=OracleSettings)
    encoder: EncoderSettings = Field(default_factory=EncoderSettings)
    attestation: AttestationSettings = Field(default_factory=AttestationSettings)


@lru_cache(maxsize=1)
def get_settings() -> SettlementSettings:
    """
    Cached accessor for SettlementSettings.

    Usage:
        from batchsettle.core.settings import get_settings
        settings = get_settings()
    """
    return SettlementSettings()
