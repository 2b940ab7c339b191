"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

No-op, in-memory and guarded telemetry sinks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .telemetry import JSONValue, TelemetryEvent, TelemetrySink, TelemetrySpan, now_ms

logger = logging.getLogger("courier.observability")


class NullTelemetrySink:
    """No-op telemetry sink used as safe runtime default."""

    def record_event(self, event: TelemetryEvent) -> None:
        _ = event

    def start_span(
        self,
        name: str,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> TelemetrySpan | None:
        _ = name, attributes
        return None

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        _ = span, status, error, attributes

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        _ = name, value, attributes

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        _ = name, value, attributes


@dataclass(slots=True)
class InMemoryTelemetrySink:
    """Sink that keeps every emitted record in memory, for tests and debugging."""

    events: list[TelemetryEvent] = field(default_factory=list)
    spans: list[dict[str, Any]] = field(default_factory=list)
    counters: list[dict[str, Any]] = field(default_factory=list)
    histograms: list[dict[str, Any]] = field(default_factory=list)

    def record_event(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def start_span(
        self,
        name: str,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> TelemetrySpan:
        return TelemetrySpan(name=name, started_at_ms=now_ms(), attributes=dict(attributes or {}))

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        if span is None:
            return
        ended_at = now_ms()
        self.spans.append(
            {
                "name": span.name,
                "duration_ms": ended_at - span.started_at_ms,
                "status": status,
                "error": error,
                "attributes": {**span.attributes, **dict(attributes or {})},
            }
        )

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        self.counters.append({"name": name, "value": int(value), "attributes": dict(attributes or {})})

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        self.histograms.append({"name": name, "value": float(value), "attributes": dict(attributes or {})})

    def counter_total(self, name: str, **attributes: JSONValue) -> int:
        """Sum a counter, optionally filtered by matching attributes."""
        total = 0
        for row in self.counters:
            if row["name"] != name:
                continue
            if any(row["attributes"].get(k) != v for k, v in attributes.items()):
                continue
            total += row["value"]
        return total

    def event_names(self) -> list[str]:
        return [item.name for item in self.events]


class GuardedTelemetrySink:
    """
    Wrap any sink so that its failures are logged and never reach the caller.

    The dispatcher routes every telemetry call through this wrapper.
    """

    def __init__(self, inner: TelemetrySink) -> None:
        self.inner = inner

    def record_event(self, event: TelemetryEvent) -> None:
        try:
            self.inner.record_event(event)
        except Exception:  # noqa: BLE001
            logger.debug("Telemetry sink failed to record event %s", event.name, exc_info=True)

    def start_span(
        self,
        name: str,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> TelemetrySpan | None:
        try:
            return self.inner.start_span(name, attributes=attributes)
        except Exception:  # noqa: BLE001
            logger.debug("Telemetry sink failed to start span %s", name, exc_info=True)
            return None

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        try:
            self.inner.end_span(span, status=status, error=error, attributes=attributes)
        except Exception:  # noqa: BLE001
            logger.debug("Telemetry sink failed to end span", exc_info=True)

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        try:
            self.inner.increment_counter(name, value, attributes=attributes)
        except Exception:  # noqa: BLE001
            logger.debug("Telemetry sink failed to record counter %s", name, exc_info=True)

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        try:
            self.inner.record_histogram(name, value, attributes=attributes)
        except Exception:  # noqa: BLE001
            logger.debug("Telemetry sink failed to record histogram %s", name, exc_info=True)


def guard_telemetry_sink(sink: TelemetrySink) -> GuardedTelemetrySink:
    """Return `sink` wrapped in a `GuardedTelemetrySink`, without double wrapping."""
    if isinstance(sink, GuardedTelemetrySink):
        return sink
    return GuardedTelemetrySink(sink)
