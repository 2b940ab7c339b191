"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

OpenTelemetry sink for dispatch spans and metrics.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .telemetry import JSONValue, TelemetryEvent, TelemetrySpan, now_ms

logger = logging.getLogger("courier.observability.otel")


@dataclass(slots=True)
class OpenTelemetrySink:
    """
    Sink backed by the global OpenTelemetry tracer and meter providers.

    The `opentelemetry` import is deferred until first use. Export errors are
    logged at debug level and never reach the dispatcher.
    """

    tracer_name: str = "courier.dispatcher"
    meter_name: str = "courier.dispatcher"

    _tracer: Any = field(default=None, init=False, repr=False)
    _meter: Any = field(default=None, init=False, repr=False)
    _counters: dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    _histograms: dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    def _ensure_clients(self) -> None:
        if self._tracer is not None and self._meter is not None:
            return
        try:
            from opentelemetry import metrics, trace
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "OpenTelemetrySink requires `opentelemetry-api` to be installed."
            ) from exc
        self._tracer = trace.get_tracer(self.tracer_name)
        self._meter = metrics.get_meter(self.meter_name)

    def record_event(self, event: TelemetryEvent) -> None:
        self.increment_counter(
            "courier.events",
            attributes={"event_name": event.name, **event.attributes},
        )

    def start_span(
        self,
        name: str,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> TelemetrySpan | None:
        try:
            self._ensure_clients()
            span = self._tracer.start_span(name=name)
            attr = _attributes(attributes)
            if attr:
                span.set_attributes(attr)
        except Exception:  # noqa: BLE001
            logger.debug("Failed to start span %s", name, exc_info=True)
            return None
        return TelemetrySpan(
            name=name,
            started_at_ms=now_ms(),
            attributes=dict(attributes or {}),
            native_span=span,
        )

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        if span is None or span.native_span is None:
            return
        from opentelemetry.trace import Status, StatusCode

        native = span.native_span
        try:
            attr = _attributes({**span.attributes, **dict(attributes or {})})
            if attr:
                native.set_attributes(attr)
            if status == "ok":
                native.set_status(Status(StatusCode.OK))
            else:
                native.set_status(Status(StatusCode.ERROR, error or status))
        except Exception:  # noqa: BLE001
            logger.debug("Failed to annotate span %s", span.name, exc_info=True)
        finally:
            native.end()

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        try:
            self._ensure_clients()
            counter = self._counters.get(name)
            if counter is None:
                counter = self._meter.create_counter(name)
                self._counters[name] = counter
            counter.add(int(value), attributes=_attributes(attributes))
        except Exception:  # noqa: BLE001
            logger.debug("Failed to record counter %s", name, exc_info=True)

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        try:
            self._ensure_clients()
            histogram = self._histograms.get(name)
            if histogram is None:
                histogram = self._meter.create_histogram(name)
                self._histograms[name] = histogram
            histogram.record(float(value), attributes=_attributes(attributes))
        except Exception:  # noqa: BLE001
            logger.debug("Failed to record histogram %s", name, exc_info=True)


def create_otel_sink(config: Mapping[str, JSONValue] | None = None) -> OpenTelemetrySink:
    conf = dict(config or {})
    return OpenTelemetrySink(
        tracer_name=str(conf.get("tracer_name", "courier.dispatcher")),
        meter_name=str(conf.get("meter_name", "courier.dispatcher")),
    )


def _attributes(value: Mapping[str, JSONValue] | None) -> dict[str, Any]:
    # OTel attribute values must be primitives or homogeneous sequences.
    attrs: dict[str, Any] = {}
    for key, item in (value or {}).items():
        if item is None:
            continue
        if isinstance(item, (str, int, float, bool)):
            attrs[str(key)] = item
        elif isinstance(item, list):
            attrs[str(key)] = tuple(str(x) for x in item)
        else:
            attrs[str(key)] = str(item)
    return attrs
