"""Logging and tracing setup shared by every layer."""

from app.shared.telemetry.logging import setup_logging
from app.shared.telemetry.telemetry import TelemetryConfig
from app.shared.telemetry.tracing import current_trace_id, traced

__all__ = ["TelemetryConfig", "current_trace_id", "setup_logging", "traced"]
