"""
Status graph and basic validator tests
"""
import pytest

from lifecycle.domain.enums import ReservationStatus as S
from lifecycle.domain.transition_graph import (
    DEFAULT_EDGES,
    TransitionGraph,
    parse_status,
    transition_graph,
)
from lifecycle.engine.validator import BasicValidator


class TestTransitionGraph:
    """Edge table lookups"""

    def test_confirmed_successors(self):
        assert transition_graph.allowed_next(S.CONFIRMED) == frozenset(
            {S.CHECKIN_DUE, S.IN_HOUSE, S.NO_SHOW, S.CANCELLED}
        )

    def test_terminal_states(self):
        assert transition_graph.is_terminal(S.CHECKED_OUT)
        assert transition_graph.is_terminal(S.CANCELLED)
        assert not transition_graph.is_terminal(S.NO_SHOW)

    def test_nothing_enters_confirmation_pending(self):
        for targets in DEFAULT_EDGES.values():
            assert S.CONFIRMATION_PENDING not in targets

    def test_rejects_edge_into_confirmation_pending(self):
        edges = dict(DEFAULT_EDGES)
        edges[S.CONFIRMED] = frozenset({S.CONFIRMATION_PENDING})
        with pytest.raises(ValueError):
            TransitionGraph(edges)

    def test_undo_edges_present(self):
        assert transition_graph.can_transition(S.IN_HOUSE, S.CONFIRMED)
        assert transition_graph.can_transition(S.NO_SHOW, S.CONFIRMED)
        assert transition_graph.can_transition(S.CHECKOUT_DUE, S.IN_HOUSE)

    def test_reachability(self):
        assert transition_graph.is_reachable(S.CONFIRMATION_PENDING, S.CHECKED_OUT)
        assert transition_graph.is_reachable(S.NO_SHOW, S.CHECKED_OUT)
        assert not transition_graph.is_reachable(S.CHECKED_OUT, S.IN_HOUSE)
        assert transition_graph.is_reachable(S.CANCELLED, S.CANCELLED)

    def test_creation_states(self):
        assert transition_graph.creation_states() == frozenset({S.CONFIRMATION_PENDING, S.CONFIRMED})

    def test_parse_status(self):
        assert parse_status(" in_house ") == S.IN_HOUSE
        assert parse_status(S.NO_SHOW) == S.NO_SHOW
        assert parse_status("TELEPORTED") is None
        assert parse_status(None) is None


class TestBasicValidator:
    """Graph-only validation"""

    def setup_method(self):
        self.validator = BasicValidator()

    def test_valid_edge(self):
        result = self.validator.validate(S.CONFIRMED, S.IN_HOUSE)
        assert result.is_valid
        assert result.reason is None

    def test_same_status(self):
        result = self.validator.validate(S.CONFIRMED, "confirmed")
        assert not result.is_valid
        assert result.reason == "Reservation is already CONFIRMED"

    def test_missing_edge(self):
        result = self.validator.validate(S.CHECKED_OUT, S.IN_HOUSE)
        assert not result.is_valid
        assert result.reason == "Cannot transition from CHECKED_OUT to IN_HOUSE"

    def test_unknown_proposed_status(self):
        result = self.validator.validate(S.CONFIRMED, "TELEPORTED")
        assert not result.is_valid
        assert result.reason == "Unknown status: TELEPORTED"

    def test_unknown_current_status(self):
        result = self.validator.validate("ARCHIVED", S.CONFIRMED)
        assert not result.is_valid
        assert result.reason == "Unknown status: ARCHIVED"

    def test_every_edge_validates_and_nothing_else_does(self):
        for current in S:
            for proposed in S:
                expected = proposed in DEFAULT_EDGES[current]
                assert self.validator.validate(current, proposed).is_valid == expected
