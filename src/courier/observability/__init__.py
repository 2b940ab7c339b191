"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Telemetry sinks and registry utilities.
"""

from .otel import OpenTelemetrySink, create_otel_sink
from .registry import (
    create_telemetry_sink,
    list_telemetry_backends,
    register_telemetry_backend,
)
from .sinks import (
    GuardedTelemetrySink,
    InMemoryTelemetrySink,
    NullTelemetrySink,
    guard_telemetry_sink,
)
from .telemetry import JSONValue, TelemetryEvent, TelemetrySink, TelemetrySpan, event, now_ms

# Register built-ins at import time.
register_telemetry_backend("null", lambda config: NullTelemetrySink())
register_telemetry_backend("inmemory", lambda config: InMemoryTelemetrySink())
register_telemetry_backend("otel", create_otel_sink)

__all__ = [
    "JSONValue",
    "TelemetryEvent",
    "TelemetrySpan",
    "TelemetrySink",
    "event",
    "now_ms",
    "NullTelemetrySink",
    "InMemoryTelemetrySink",
    "GuardedTelemetrySink",
    "guard_telemetry_sink",
    "OpenTelemetrySink",
    "create_otel_sink",
    "create_telemetry_sink",
    "list_telemetry_backends",
    "register_telemetry_backend",
]
