"""Tests for the commission status graph."""

import pytest

from artmarket.domain.models import CommissionStatus
from artmarket.domain.transitions import (
    TERMINAL_STATES,
    TRANSITIONS,
    is_terminal,
    validate_transition,
)

pytestmark = pytest.mark.unit

S = CommissionStatus


class TestValidateTransition:
    """Strict and permissive status validation."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (S.PENDING, S.REVIEWING),
            (S.PENDING, S.QUOTED),
            (S.QUOTED, S.NEGOTIATING),
            (S.NEGOTIATING, S.QUOTED),
            (S.ACCEPTED, S.IN_PROGRESS),
            (S.IN_PROGRESS, S.REVIEW),
            (S.REVIEW, S.REVISION),
            (S.REVISION, S.IN_PROGRESS),
            (S.REVIEW, S.COMPLETED),
            (S.COMPLETED, S.DELIVERED),
        ],
    )
    def test_forward_edges_allowed(self, current, target):
        result = validate_transition(current, target)
        assert result.allowed is True
        assert result.new_status == target

    def test_pending_to_completed_rejected(self):
        result = validate_transition(S.PENDING, S.COMPLETED)
        assert result.allowed is False
        assert "pending" in result.reason

    def test_same_status_rejected(self):
        assert validate_transition(S.QUOTED, S.QUOTED).allowed is False

    @pytest.mark.parametrize("current", [s for s in S if s not in TERMINAL_STATES])
    def test_cancel_and_reject_from_any_open_state(self, current):
        assert validate_transition(current, S.CANCELLED).allowed is True
        assert validate_transition(current, S.REJECTED).allowed is True

    @pytest.mark.parametrize("current", [S.DELIVERED, S.CANCELLED, S.REJECTED])
    def test_terminal_states_have_no_exits(self, current):
        for target in S:
            assert validate_transition(current, target).allowed is False

    def test_completed_only_moves_to_delivered(self):
        assert TRANSITIONS[S.COMPLETED] == frozenset({S.DELIVERED})
        assert validate_transition(S.COMPLETED, S.IN_PROGRESS).allowed is False

    def test_permissive_mode_allows_anything(self):
        result = validate_transition(S.DELIVERED, S.PENDING, enforce_graph=False)
        assert result.allowed is True
        assert result.new_status == S.PENDING

    def test_every_status_has_an_entry(self):
        assert set(TRANSITIONS) == set(S)


class TestIsTerminal:
    def test_terminal_statuses(self):
        assert {s for s in S if is_terminal(s)} == {S.COMPLETED, S.DELIVERED, S.CANCELLED, S.REJECTED}
