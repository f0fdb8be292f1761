"""
Batch pipeline.

Runs one batch request through the stages in strict order:

    metadata -> aggregate -> price -> encode token0, token1 -> attest

Each stage consumes the previous stage's output; nothing is returned unless
every stage succeeds. The pipeline keeps no per-batch state. The only shared
mutable state is inside the volume encoder (the cofhe salt counter).
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Callable, Optional, Protocol

from batchsettle.core.aggregator import aggregate_orders
from batchsettle.core.pricer import SettlementPricer
from batchsettle.core.settings import SettlementSettings
from batchsettle.oracle.pyth import OraclePrice, PythPriceClient
from batchsettle.protocol.errors import (
    ComputationFailure,
    InvalidConfiguration,
    SettlementError,
    UpstreamUnavailable,
)
from batchsettle.protocol.models import (
    AttestationRecord,
    BatchMetadata,
    BatchRequest,
    BatchResult,
    BatchSettlement,
    CommittedVolumePair,
    NetFlow,
)
from batchsettle.security.attestation import AttestationSigner, create_attestation_signer
from batchsettle.security.volume import VolumeEncoder, create_volume_encoder, open_sealed_volume
from batchsettle.utils.timestamps import now_unix

logger = logging.getLogger(__name__)


class PriceSource(Protocol):
    async def fetch(self) -> OraclePrice:
        ...


SealedVolumeOpener = Callable[[str], int]


class BatchPipeline:
    def __init__(
        self,
        *,
        pricer: SettlementPricer,
        encoder: VolumeEncoder,
        signer: AttestationSigner,
        oracle: Optional[PriceSource] = None,
        open_sealed: Optional[SealedVolumeOpener] = None,
    ) -> None:
        self._pricer = pricer
        self._encoder = encoder
        self._signer = signer
        self._oracle = oracle
        self._open_sealed = open_sealed

    @property
    def signer(self) -> AttestationSigner:
        return self._signer

    @property
    def encoder(self) -> VolumeEncoder:
        return self._encoder

    async def execute(self, request: BatchRequest) -> BatchResult:
        logger.info(
            "Executing batch %s for pool %s (%d orders)",
            request.batch_id,
            request.pool_id,
            len(request.orders),
        )
        metadata = await self._resolve_metadata(request)
        flow = self._net_flow(request)

        try:
            quote = self._pricer.quote(metadata.oracle_price, request.strategy_params)
        except ValueError as exc:
            raise ComputationFailure(str(exc)) from exc

        settlement = self._pricer.settle(
            pool_id=request.pool_id,
            batch_id=request.batch_id,
            flow=flow,
            quote=quote,
            timestamp=metadata.timestamp,
        )

        # signing must see the finished commitments; both run off the event loop
        volumes = await asyncio.to_thread(self._encode, flow)
        attestation = await asyncio.to_thread(self._attest, settlement, volumes)

        logger.info(
            "Batch %s settled: spread=%dbps token0Flow=%d token1Flow=%d deadline=%d scheme=%s",
            request.batch_id,
            quote.spread_bps,
            flow.token0,
            flow.token1,
            settlement.deadline,
            attestation.scheme.value,
        )
        return BatchResult(
            settlement=settlement,
            volumes=volumes,
            attestation=attestation,
            metadata=metadata,
            quote=quote,
            flow=flow,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    async def _resolve_metadata(self, request: BatchRequest) -> BatchMetadata:
        hint = request.metadata

        if self._oracle is not None:
            try:
                price = await self._oracle.fetch()
            except SettlementError:
                raise
            except Exception as exc:
                raise UpstreamUnavailable("oracle price fetch failed") from exc
            return BatchMetadata(
                oracle_price=price.price,
                timestamp=hint.timestamp if hint.timestamp is not None else price.timestamp,
                confidence_bps=price.confidence_bps,
                price_update_data=price.price_update_data,
            )

        if hint.oracle_price is None:
            raise UpstreamUnavailable("no oracle configured and the request carries no oraclePrice")
        return BatchMetadata(
            oracle_price=hint.oracle_price,
            timestamp=hint.timestamp if hint.timestamp is not None else now_unix(),
            confidence_bps=hint.confidence_bps,
        )

    def _net_flow(self, request: BatchRequest) -> NetFlow:
        sealed = request.sealed_volumes
        if sealed is None:
            return aggregate_orders(request.orders)

        if self._open_sealed is None:
            raise InvalidConfiguration("sealed volumes received but no shared secret is configured")
        # pre-aggregated volumes: token0 flows in, token1 flows out
        return NetFlow(
            token0=self._open_sealed(sealed.token0),
            token1=-self._open_sealed(sealed.token1),
        )

    def _encode(self, flow: NetFlow) -> CommittedVolumePair:
        magnitude0, magnitude1 = flow.magnitudes
        try:
            return CommittedVolumePair(
                token0=self._encoder.encode(magnitude0),
                token1=self._encoder.encode(magnitude1),
            )
        except SettlementError:
            raise
        except Exception as exc:
            raise ComputationFailure("volume encoding failed") from exc

    def _attest(self, settlement: BatchSettlement, volumes: CommittedVolumePair) -> AttestationRecord:
        try:
            return self._signer.sign(settlement, volumes)
        except SettlementError:
            raise
        except Exception as exc:
            raise ComputationFailure("attestation signing failed") from exc


def build_pipeline(
    settings: SettlementSettings,
    *,
    oracle: Optional[PriceSource] = None,
) -> BatchPipeline:
    """
    Assemble a pipeline from settings. An explicit oracle overrides the
    Pyth client built from PYTH_HERMES_URL / PYTH_FEED_ID.
    """
    if oracle is None and settings.oracle.enabled:
        oracle = PythPriceClient(
            settings.oracle.hermes_url,
            settings.oracle.feed_id,
            timeout=settings.oracle.timeout,
        )

    open_sealed = None
    if settings.encoder.shared_secret:
        open_sealed = functools.partial(open_sealed_volume, shared_secret=settings.encoder.shared_secret)

    return BatchPipeline(
        pricer=SettlementPricer(default_spread_bps=settings.strategy.spread_bps),
        encoder=create_volume_encoder(settings.encoder),
        signer=create_attestation_signer(
            settings.attestation,
            production=settings.runtime.is_production,
        ),
        oracle=oracle,
        open_sealed=open_sealed,
    )
