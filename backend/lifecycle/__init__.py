"""
lifecycle - reservation lifecycle engine

Storage-agnostic engine that decides which status a reservation may move to,
validates the move, records the audit trail and drives time-based transitions:
- domain: enums, value objects, transition graph, effective roles
- engine: validator, rule engine, audit trail, locks, coordinator, day-roll
- scheduler: automation sweeps and the scheduler backend interface
- notification: channel interface and asynchronous dispatcher

Usage:
    >>> from lifecycle.engine.coordinator import TransitionCoordinator
    >>> from lifecycle.domain.enums import ReservationStatus
"""

__version__ = "0.1.0"
