"""Unit tests for ride lifecycle rules (State Pattern)."""

from types import SimpleNamespace

import pytest

from ridehail.domain.entities import (
    Caller,
    ensure_transition,
    is_party,
    validate_booking,
    validate_rating,
)
from ridehail.domain.enums import RIDE_TRANSITIONS, Role, RideStatus
from ridehail.domain.errors import InvalidStateTransition, ValidationError


class TestRideStateMachine:
    # ── Valid transitions ─────────────────────────────────────────

    @pytest.mark.parametrize(
        "current, new",
        [
            (RideStatus.REQUESTED, RideStatus.ACCEPTED),
            (RideStatus.REQUESTED, RideStatus.CANCELLED),
            (RideStatus.ACCEPTED, RideStatus.IN_PROGRESS),
            (RideStatus.ACCEPTED, RideStatus.CANCELLED),
            (RideStatus.IN_PROGRESS, RideStatus.COMPLETED),
            (RideStatus.IN_PROGRESS, RideStatus.CANCELLED),
        ],
    )
    def test_allowed(self, current, new):
        ensure_transition(current, new)

    # ── Invalid transitions ───────────────────────────────────────

    def test_requested_to_completed_names_both_states(self):
        with pytest.raises(InvalidStateTransition) as exc:
            ensure_transition(RideStatus.REQUESTED, RideStatus.COMPLETED)
        assert exc.value.message == "Cannot transition from requested to completed"
        assert exc.value.current == RideStatus.REQUESTED
        assert exc.value.requested == RideStatus.COMPLETED

    def test_accepted_cannot_skip_to_completed(self):
        with pytest.raises(InvalidStateTransition):
            ensure_transition(RideStatus.ACCEPTED, RideStatus.COMPLETED)

    @pytest.mark.parametrize("terminal", [RideStatus.COMPLETED, RideStatus.CANCELLED])
    def test_terminal_states_have_no_exit(self, terminal):
        for target in RideStatus:
            with pytest.raises(InvalidStateTransition):
                ensure_transition(terminal, target)

    def test_no_transition_reenters_an_earlier_state(self):
        order = list(RideStatus)
        for current, targets in RIDE_TRANSITIONS.items():
            for target in targets:
                assert order.index(target) > order.index(current)

    def test_self_transition_rejected(self):
        with pytest.raises(InvalidStateTransition):
            ensure_transition(RideStatus.ACCEPTED, RideStatus.ACCEPTED)

    def test_accepts_plain_strings(self):
        ensure_transition("accepted", "in_progress")


class TestParties:
    def setup_method(self):
        self.ride = SimpleNamespace(passenger_id=1, driver_id=7)

    def test_passenger_owner(self):
        assert is_party(self.ride, Caller(id=1, role=Role.PASSENGER))

    def test_other_passenger(self):
        assert not is_party(self.ride, Caller(id=2, role=Role.PASSENGER))

    def test_assigned_driver(self):
        assert is_party(self.ride, Caller(id=7, role=Role.DRIVER))

    def test_driver_with_passenger_id_is_not_a_party(self):
        """Role matters: a driver whose id equals the passenger id is not the passenger."""
        assert not is_party(self.ride, Caller(id=1, role=Role.DRIVER))

    def test_unassigned_ride_has_no_driver_party(self):
        ride = SimpleNamespace(passenger_id=1, driver_id=None)
        assert not is_party(ride, Caller(id=7, role=Role.DRIVER))


class TestBookingValidation:
    def test_valid(self):
        validate_booking("A", "B", 5, 80)
        validate_booking("A", "B", 5, 80, discounted_fare=80)

    @pytest.mark.parametrize(
        "pickup, drop, distance, fare",
        [
            ("", "B", 5, 80),
            ("A", "   ", 5, 80),
            ("A", "B", 0, 80),
            ("A", "B", 5, -1),
            ("A", "B", float("inf"), 80),
            ("A", "B", 5, float("nan")),
        ],
    )
    def test_missing_or_non_positive(self, pickup, drop, distance, fare):
        with pytest.raises(ValidationError):
            validate_booking(pickup, drop, distance, fare)

    def test_discount_above_fare(self):
        with pytest.raises(ValidationError):
            validate_booking("A", "B", 5, 80, discounted_fare=90)

    def test_fare_must_be_finite(self):
        with pytest.raises(ValidationError, match="positive numbers"):
            validate_booking("A", "B", 5, float("inf"))
        with pytest.raises(ValidationError):
            validate_booking("A", "B", 5, 80, discounted_fare=float("-inf"))

    def test_rating_bounds(self):
        validate_rating(1)
        validate_rating(5)
        for bad in (0, 5.5, None, float("nan")):
            with pytest.raises(ValidationError):
                validate_rating(bad)
