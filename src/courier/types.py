"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Core value types shared by the dispatcher, its primitives and backends.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DeliveryState(str, Enum):
    """Lifecycle states exposed through the status projection."""

    RETRYING = "retrying"
    SENT = "sent"
    FAILED = "failed"


class FailureKind(str, Enum):
    """Failure taxonomy carried on outcomes instead of raised exceptions."""

    ADMISSION_DENIED = "admission_denied"
    CIRCUIT_OPEN = "circuit_open"
    TRANSIENT_BACKEND_FAILURE = "transient_backend_failure"
    BACKEND_EXHAUSTED = "backend_exhausted"
    ALL_BACKENDS_EXHAUSTED = "all_backends_exhausted"


@dataclass(frozen=True, slots=True)
class Message:
    """
    One unit of work to deliver.

    Attributes:
        id: Unique identity, the only correlation key across components.
        to: Destination address.
        subject: Subject line.
        body: Message body.
    """

    id: str
    to: str
    subject: str = ""
    body: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("Message id must be a non-empty string")


@dataclass(frozen=True, slots=True)
class DeliveryReport:
    """Result of a single delivery attempt as reported by a backend."""

    success: bool
    message: str = ""


@dataclass(frozen=True, slots=True)
class Outcome:
    """
    Terminal result of dispatching one message.

    `backend` is only set when a backend delivered the message. `failure`
    classifies unsuccessful outcomes.
    """

    success: bool
    detail: str
    backend: str | None = None
    attempts: int = 0
    failure: FailureKind | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "detail": self.detail,
            "backend": self.backend,
            "attempts": self.attempts,
            "failure": self.failure.value if self.failure else None,
        }


@dataclass(frozen=True, slots=True)
class StatusRecord:
    """Latest observable lifecycle snapshot for one message identity."""

    status: DeliveryState
    backend: str | None
    attempts: int
    timestamp: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "backend": self.backend,
            "attempts": self.attempts,
            "timestamp": self.timestamp,
        }
