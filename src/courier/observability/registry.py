"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Registry for pluggable telemetry sink factories.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from threading import Lock

from ..errors import TelemetryBackendError
from .telemetry import JSONValue, TelemetrySink

SinkFactory = Callable[[Mapping[str, JSONValue] | None], TelemetrySink]

_FACTORIES: dict[str, SinkFactory] = {}
_LOCK = Lock()


def register_telemetry_backend(backend_id: str, factory: SinkFactory) -> None:
    """Register one sink factory under a stable backend id."""
    key = str(backend_id).strip().lower()
    if not key:
        raise TelemetryBackendError("Telemetry backend id must be non-empty")
    with _LOCK:
        _FACTORIES[key] = factory


def list_telemetry_backends() -> list[str]:
    """Return sorted list of registered telemetry backend ids."""
    with _LOCK:
        return sorted(_FACTORIES.keys())


def create_telemetry_sink(
    backend: str | TelemetrySink | None = None,
    *,
    config: Mapping[str, JSONValue] | None = None,
) -> TelemetrySink:
    """
    Resolve a sink from a backend id, or pass a sink instance through.

    Args:
        backend: Backend id (`null`, `inmemory`, `otel`), sink instance, or
            `None` for the no-op sink.
        config: Optional backend-specific configuration payload.
    """
    if backend is not None and not isinstance(backend, str):
        return backend
    key = (backend or "null").strip().lower()
    with _LOCK:
        factory = _FACTORIES.get(key)
    if factory is None:
        raise TelemetryBackendError(f"Unknown telemetry backend '{backend}'")
    return factory(config)
