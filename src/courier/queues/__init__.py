"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Background re-submission of failed messages.

Quick start::

    from courier.queues import Resubmitter

    resubmitter = Resubmitter(dispatcher)
    await resubmitter.start()

    outcome = await dispatcher.dispatch(message)
    if not outcome.success:
        resubmitter.enqueue(message)
"""

from .metrics import (
    NoOpResubmitterMetrics,
    PrometheusResubmitterMetrics,
    ResubmitterMetrics,
)
from .resubmitter import Resubmitter

__all__ = [
    "NoOpResubmitterMetrics",
    "PrometheusResubmitterMetrics",
    "Resubmitter",
    "ResubmitterMetrics",
]
