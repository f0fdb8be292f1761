"""
HTTP gateway.

Routes:
    GET  /        service info and public metadata
    POST /batch   run one batch through the pipeline

Errors are translated to HTTP here and nowhere else:
    SchemaViolation      -> 400 {ok: false, message, issues}
    bad/missing API key  -> 401
    UpstreamUnavailable  -> 502
    anything else        -> 500 {ok: false, message: "Batch execution failed"}
"""

from __future__ import annotations

import hmac
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from batchsettle.core.pipeline import BatchPipeline, build_pipeline
from batchsettle.core.settings import SettlementSettings, get_settings
from batchsettle.protocol.errors import SchemaViolation, UpstreamUnavailable
from batchsettle.protocol.validators import parse_batch_request
from batchsettle.utils.timestamps import now_iso

logger = logging.getLogger(__name__)


@dataclass
class AppDeps:
    pipeline: BatchPipeline
    public_metadata: Dict[str, Any] = field(default_factory=dict)
    api_key: Optional[str] = None
    encoder_mode: Optional[str] = None


def _error(status: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status, content={"ok": False, "message": message, **extra})


def _authorized(request: Request, api_key: Optional[str]) -> bool:
    if not api_key:
        return True
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    return scheme.lower() == "bearer" and hmac.compare_digest(token.encode(), api_key.encode())


def create_app(deps: AppDeps) -> FastAPI:
    started_at = now_iso()
    app = FastAPI(title="Batch Settlement Executor", version="0.1.0")

    @app.get("/")
    async def service_info():
        return {
            "ok": True,
            "startedAt": started_at,
            "publicMetadata": deps.public_metadata,
            "encoderMode": deps.encoder_mode,
            "attestationScheme": deps.pipeline.signer.scheme.value,
        }

    @app.post("/batch")
    async def execute_batch(request: Request):
        if not _authorized(request, deps.api_key):
            return _error(401, "Unauthorized")

        raw = await request.body()
        try:
            body = json.loads(raw) if raw else None
        except ValueError:
            body = None

        try:
            batch = parse_batch_request(body)
            result = await deps.pipeline.execute(batch)
        except SchemaViolation as e:
            return _error(400, "Invalid payload", issues=e.issues)
        except UpstreamUnavailable as e:
            logger.error("Batch execution failed: upstream unavailable: %s", e)
            return _error(502, "Upstream unavailable")
        except Exception:
            logger.exception("Batch execution failed")
            return _error(500, "Batch execution failed")

        return JSONResponse(content=result.to_response())

    return app


def create_app_from_settings(settings: Optional[SettlementSettings] = None) -> FastAPI:
    settings = settings or get_settings()
    return create_app(
        AppDeps(
            pipeline=build_pipeline(settings),
            public_metadata=settings.gateway.public_metadata(),
            api_key=settings.gateway.api_key,
            encoder_mode=settings.encoder.mode.value,
        )
    )
