"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Capability contract implemented by delivery backends.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from ..types import DeliveryReport, Message


@runtime_checkable
class DeliveryBackend(Protocol):
    """
    Anything with a stable `name` and an async `attempt_delivery`.

    Backends should report ordinary failures as `DeliveryReport(success=False)`
    rather than raising; a raised exception is still treated as a failure.
    """

    name: str

    async def attempt_delivery(
        self, message: Message
    ) -> DeliveryReport | Mapping[str, Any]:
        """Try to deliver one message once."""
        ...


def coerce_report(raw: Any) -> DeliveryReport:
    """
    Normalize a backend return value into a `DeliveryReport`.

    Accepts `DeliveryReport`, mappings and objects exposing `success` and
    `message`. Only a literal `True` success flag counts as delivered.
    """
    if isinstance(raw, DeliveryReport):
        return raw
    if isinstance(raw, Mapping):
        success = raw.get("success")
        message = raw.get("message")
    else:
        success = getattr(raw, "success", None)
        message = getattr(raw, "message", None)
    return DeliveryReport(
        success=success is True,
        message=str(message) if message is not None else "",
    )
