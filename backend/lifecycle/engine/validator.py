"""
lifecycle/engine/validator.py

Basic validator - checks a proposed transition against the status graph only.
Pure: no I/O, safe to call any number of times.
"""
from dataclasses import dataclass
from typing import Optional, Union

from lifecycle.domain.enums import ReservationStatus
from lifecycle.domain.transition_graph import TransitionGraph, parse_status, transition_graph


@dataclass(frozen=True)
class BasicValidation:
    is_valid: bool
    reason: Optional[str] = None


class BasicValidator:
    """Validates (current, proposed) pairs against a TransitionGraph."""

    def __init__(self, graph: Optional[TransitionGraph] = None):
        self._graph = graph or transition_graph

    @property
    def graph(self) -> TransitionGraph:
        return self._graph

    def validate(
        self,
        current: Union[str, ReservationStatus],
        proposed: Union[str, ReservationStatus],
    ) -> BasicValidation:
        current_status = parse_status(current)
        if current_status is None:
            return BasicValidation(False, f"Unknown status: {current}")
        proposed_status = parse_status(proposed)
        if proposed_status is None:
            return BasicValidation(False, f"Unknown status: {proposed}")

        if current_status == proposed_status:
            return BasicValidation(False, f"Reservation is already {current_status.value}")

        if not self._graph.can_transition(current_status, proposed_status):
            return BasicValidation(
                False,
                f"Cannot transition from {current_status.value} to {proposed_status.value}",
            )
        return BasicValidation(True)


__all__ = ["BasicValidation", "BasicValidator"]
