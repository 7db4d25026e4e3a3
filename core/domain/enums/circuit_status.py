"""
Circuit Status Enum.

States of the per-provider circuit breaker.
"""
from enum import Enum


class CircuitStatus(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"
