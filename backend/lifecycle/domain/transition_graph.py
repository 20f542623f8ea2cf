"""
lifecycle/domain/transition_graph.py

Static reservation status graph.

The graph is pure data: which status may move to which. Undo edges
(IN_HOUSE -> CONFIRMED, NO_SHOW -> CONFIRMED) are ordinary edges here; the
rule engine decides who may take them.
"""
from collections import deque
from typing import Dict, FrozenSet, Optional, Union

from lifecycle.domain.enums import ReservationStatus

S = ReservationStatus

DEFAULT_EDGES: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    S.CONFIRMATION_PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.CHECKIN_DUE, S.IN_HOUSE, S.NO_SHOW, S.CANCELLED}),
    S.CHECKIN_DUE: frozenset({S.IN_HOUSE, S.NO_SHOW, S.CANCELLED}),
    S.IN_HOUSE: frozenset({S.CHECKOUT_DUE, S.CHECKED_OUT, S.CONFIRMED, S.CANCELLED}),
    S.CHECKOUT_DUE: frozenset({S.CHECKED_OUT, S.IN_HOUSE}),
    S.NO_SHOW: frozenset({S.CONFIRMED}),
    S.CHECKED_OUT: frozenset(),
    S.CANCELLED: frozenset(),
}

CREATION_STATES: FrozenSet[ReservationStatus] = frozenset({S.CONFIRMATION_PENDING, S.CONFIRMED})


def parse_status(value: Union[str, ReservationStatus, None]) -> Optional[ReservationStatus]:
    """Coerce a raw status value, returning None when it is not a known status."""
    if isinstance(value, ReservationStatus):
        return value
    if value is None:
        return None
    try:
        return ReservationStatus(str(value).strip().upper())
    except ValueError:
        return None


class TransitionGraph:
    """
    Lookup over the status edge table.

    Example:
        >>> graph = TransitionGraph()
        >>> ReservationStatus.NO_SHOW in graph.allowed_next(ReservationStatus.CONFIRMED)
        True
    """

    def __init__(self, edges: Optional[Dict[ReservationStatus, FrozenSet[ReservationStatus]]] = None):
        self._edges = dict(edges or DEFAULT_EDGES)
        for targets in self._edges.values():
            if S.CONFIRMATION_PENDING in targets:
                raise ValueError("No edge may enter CONFIRMATION_PENDING")

    def allowed_next(self, status: ReservationStatus) -> FrozenSet[ReservationStatus]:
        """Statuses reachable from ``status`` in one step. Unknown statuses have none."""
        return self._edges.get(status, frozenset())

    def can_transition(self, current: ReservationStatus, proposed: ReservationStatus) -> bool:
        return proposed in self.allowed_next(current)

    def is_terminal(self, status: ReservationStatus) -> bool:
        return not self.allowed_next(status)

    def creation_states(self) -> FrozenSet[ReservationStatus]:
        return CREATION_STATES

    def is_reachable(self, start: ReservationStatus, target: ReservationStatus) -> bool:
        """Breadth-first search over the edges; a status is reachable from itself."""
        if start == target:
            return True
        seen = {start}
        queue = deque([start])
        while queue:
            for nxt in self.allowed_next(queue.popleft()):
                if nxt == target:
                    return True
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return False

    def edges(self) -> Dict[ReservationStatus, FrozenSet[ReservationStatus]]:
        return dict(self._edges)


# Global graph instance
transition_graph = TransitionGraph()


__all__ = [
    "DEFAULT_EDGES",
    "CREATION_STATES",
    "TransitionGraph",
    "transition_graph",
    "parse_status",
]
