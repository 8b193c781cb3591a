"""Startup and shutdown wiring for the identity API.

Owns the process-wide resources: the shared httpx client used by the
hosted identity provider and the email API, the tracer provider, and
the SQL engine.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from app.core.config import get_settings
from app.infrastructure.persistence.database import _ensure_engine, dispose_engine, get_engine
from app.shared.telemetry import TelemetryConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()

    app.state.http_client = httpx.AsyncClient(
        timeout=settings.identity_provider_timeout_seconds
    )

    telemetry: TelemetryConfig | None = None
    if settings.telemetry_enabled:
        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.telemetry_environment,
            exporter=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        telemetry.start()
        _ensure_engine()
        telemetry.instrument(app, get_engine())
    app.state.telemetry = telemetry

    try:
        yield
    finally:
        await app.state.http_client.aclose()
        app.state.http_client = None
        if telemetry is not None:
            telemetry.stop()
        await dispose_engine()
        logger.info("Shutdown complete")
