"""Tests for the shipment status state machine — every (from, to) pair."""

import itertools

import pytest
from dispatch.shipment.status import (
    IllegalTransition,
    ShipmentStatus,
    allowed_next,
    assert_can_transition,
    describe,
    is_terminal,
    progress,
    timeline_step,
)
from protean.exceptions import ValidationError

S = ShipmentStatus

LEGAL = {
    (S.PENDING, S.PICKED_UP),
    (S.PENDING, S.CANCELLED),
    (S.PICKED_UP, S.IN_TRANSIT),
    (S.PICKED_UP, S.RETURNED),
    (S.IN_TRANSIT, S.OUT_FOR_DELIVERY),
    (S.IN_TRANSIT, S.RETURNED),
    (S.OUT_FOR_DELIVERY, S.DELIVERED),
    (S.OUT_FOR_DELIVERY, S.FAILED),
    (S.FAILED, S.RETURNED),
    (S.FAILED, S.OUT_FOR_DELIVERY),
}


class TestTransitionTable:
    @pytest.mark.parametrize("current,target", sorted(LEGAL, key=lambda p: (p[0].value, p[1].value)))
    def test_legal_transition_is_accepted(self, current, target):
        assert target in allowed_next(current)
        assert_can_transition(current, target)

    def test_every_other_pair_is_rejected(self):
        for current, target in itertools.product(S, S):
            if (current, target) in LEGAL:
                continue
            with pytest.raises(IllegalTransition) as exc_info:
                assert_can_transition(current, target)
            assert exc_info.value.current == current
            assert exc_info.value.attempted == target

    def test_allowed_next_matches_table(self):
        for current in S:
            expected = {t for (c, t) in LEGAL if c == current}
            assert set(allowed_next(current)) == expected

    def test_accepts_string_values(self):
        assert_can_transition("PENDING", "PICKED_UP")


class TestTerminalStates:
    @pytest.mark.parametrize("status", [S.DELIVERED, S.RETURNED, S.CANCELLED])
    def test_terminal_states_have_no_successors(self, status):
        assert is_terminal(status)
        assert allowed_next(status) == frozenset()

    @pytest.mark.parametrize("status", [S.PENDING, S.PICKED_UP, S.IN_TRANSIT, S.OUT_FOR_DELIVERY, S.FAILED])
    def test_non_terminal_states(self, status):
        assert not is_terminal(status)

    def test_failed_is_recoverable(self):
        assert allowed_next(S.FAILED) == frozenset({S.RETURNED, S.OUT_FOR_DELIVERY})


class TestEmptyHistory:
    @pytest.mark.parametrize("target", [S.PENDING, S.PICKED_UP, S.CANCELLED])
    def test_empty_history_behaves_as_pending(self, target):
        assert_can_transition(None, target)

    @pytest.mark.parametrize("target", [S.IN_TRANSIT, S.OUT_FOR_DELIVERY, S.DELIVERED, S.FAILED, S.RETURNED])
    def test_empty_history_rejects_later_statuses(self, target):
        with pytest.raises(IllegalTransition) as exc_info:
            assert_can_transition(None, target)
        assert exc_info.value.current is None
        assert exc_info.value.attempted == target


class TestIllegalTransitionError:
    def test_is_a_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            assert_can_transition(S.PICKED_UP, S.DELIVERED)
        assert "Cannot transition from PICKED_UP to DELIVERED" in exc_info.value.messages["status"][0]


class TestDisplayMetadata:
    def test_progress_percentages(self):
        assert [progress(s) for s in S] == [0, 25, 50, 75, 100, 75, 50, 0]

    def test_every_status_has_a_description(self):
        for status in S:
            assert describe(status)

    def test_timeline_steps(self):
        assert timeline_step(S.PENDING) == 0
        assert timeline_step(S.DELIVERED) == 4
        assert timeline_step(S.FAILED) == timeline_step(S.OUT_FOR_DELIVERY)
