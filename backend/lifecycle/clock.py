"""
lifecycle/clock.py

Time source used by the engine. Every component takes a ``Clock`` so tests
can drive it with a fixed time.
"""
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


__all__ = ["Clock", "utcnow"]
