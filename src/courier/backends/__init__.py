"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Delivery backend contract and built-in simulated backends.
"""

from .contracts import DeliveryBackend, coerce_report
from .simulated import SimulatedBackend

__all__ = [
    "DeliveryBackend",
    "SimulatedBackend",
    "coerce_report",
]
