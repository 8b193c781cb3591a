"""OpenTelemetry tracer provider for the identity service.

Spans cover each HTTP request, the SQL statements it issues and the
``@traced`` identity operations in between. Exported over OTLP/gRPC or
printed to the console; ``none`` keeps spans in-process only.
"""

import logging
from dataclasses import dataclass, field

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

EXPORTERS = ("console", "otlp", "none")


@dataclass
class TelemetryConfig:
    """Tracing settings plus the provider built from them."""

    service_name: str
    service_version: str
    environment: str = "development"
    exporter: str = "console"
    otlp_endpoint: str | None = None
    sample_rate: float = 1.0
    provider: TracerProvider | None = field(default=None, init=False)

    def _exporter(self) -> SpanExporter | None:
        if self.exporter == "none":
            return None
        if self.exporter == "otlp":
            if not self.otlp_endpoint:
                raise ValueError("telemetry_otlp_endpoint is required for the otlp exporter")
            return OTLPSpanExporter(
                endpoint=self.otlp_endpoint,
                insecure=self.otlp_endpoint.startswith("http://"),
            )
        if self.exporter != "console":
            logger.warning("Unknown span exporter %r; falling back to console", self.exporter)
        return ConsoleSpanExporter()

    def start(self) -> TracerProvider:
        """Build the provider and install it as the global one."""
        resource = Resource(
            attributes={
                SERVICE_NAME: self.service_name,
                SERVICE_VERSION: self.service_version,
                "deployment.environment": self.environment,
            }
        )
        provider = TracerProvider(
            resource=resource, sampler=TraceIdRatioBased(self.sample_rate)
        )
        exporter = self._exporter()
        if exporter is not None:
            provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)
        self.provider = provider
        logger.info(
            "Tracing started: service=%s exporter=%s sample_rate=%s",
            self.service_name,
            self.exporter,
            self.sample_rate,
        )
        return provider

    def instrument(self, app: FastAPI, engine: AsyncEngine | None) -> None:
        """Attach FastAPI and SQLAlchemy instrumentation to the started provider."""
        if self.provider is None:
            return
        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=self.provider, excluded_urls="/health"
        )
        if engine is not None:
            SQLAlchemyInstrumentor().instrument(
                engine=engine.sync_engine, tracer_provider=self.provider
            )

    def stop(self) -> None:
        """Flush pending spans; safe to call when tracing never started."""
        if self.provider is None:
            return
        try:
            self.provider.shutdown()
        except Exception:
            logger.exception("Span flush failed during shutdown")
        self.provider = None
