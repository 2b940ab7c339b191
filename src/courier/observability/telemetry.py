"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Telemetry event/span types and sink protocol.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

JSONValue = Union[str, int, float, bool, None, list["JSONValue"], dict[str, "JSONValue"]]


@dataclass(frozen=True, slots=True)
class TelemetryEvent:
    """Point-in-time telemetry event payload."""

    name: str
    timestamp_ms: int
    attributes: dict[str, JSONValue] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TelemetrySpan:
    """Started telemetry span payload."""

    name: str
    started_at_ms: int
    attributes: dict[str, JSONValue] = field(default_factory=dict)
    native_span: Any = None


class TelemetrySink(Protocol):
    """Protocol implemented by telemetry sink backends."""

    def record_event(self, event: TelemetryEvent) -> None:
        ...

    def start_span(
        self,
        name: str,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> TelemetrySpan | None:
        ...

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        ...

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        ...

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        ...


def now_ms() -> int:
    """Return current Unix epoch time in milliseconds."""

    return int(time.time() * 1000)


def event(name: str, **attributes: JSONValue) -> TelemetryEvent:
    """Build a `TelemetryEvent` stamped with the current time."""
    return TelemetryEvent(name=name, timestamp_ms=now_ms(), attributes=dict(attributes))
