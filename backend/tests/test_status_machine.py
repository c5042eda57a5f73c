"""
예약 상태 머신 테스트
"""

from datetime import datetime, timezone

import pytest

from app.errors import InvalidTransitionError
from app.models import Booking, TrackingEntry
from app.models.booking import BookingStatus, ServiceType
from app.services.status_machine import (
    Actor, ActorRole, TERMINAL_STATES, TRANSITIONS, apply_transition, validate_transition,
)

ALL_STATUSES = list(BookingStatus)


def _booking(status):
    return Booking(booking_reference="S123456ABC", service_type=ServiceType.COURIER, status=status)


@pytest.mark.parametrize("current", ALL_STATUSES)
@pytest.mark.parametrize("target", ALL_STATUSES)
def test_super_admin_follows_transition_table(current, target):
    decision = validate_transition(current, target, ActorRole.SUPER_ADMIN)
    expected = current not in TERMINAL_STATES and (
        target == BookingStatus.CANCELLED or target in TRANSITIONS[current]
    )
    assert decision.allowed is expected


@pytest.mark.parametrize("current", [s for s in ALL_STATUSES if s not in TERMINAL_STATES])
@pytest.mark.parametrize("role", list(ActorRole))
def test_cancel_allowed_from_any_non_terminal_state_for_any_role(current, role):
    assert validate_transition(current, BookingStatus.CANCELLED, role).allowed


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATES))
def test_terminal_states_reject_everything(terminal):
    for target in ALL_STATUSES:
        decision = validate_transition(terminal, target, ActorRole.SUPER_ADMIN)
        assert not decision.allowed
        assert decision.code == "TERMINAL_STATE"


def test_dispatcher_cannot_mark_picked():
    decision = validate_transition(BookingStatus.CONFIRMED, BookingStatus.PICKED, ActorRole.DISPATCHER)
    assert not decision.allowed
    assert decision.code == "INSUFFICIENT_ROLE"
    assert set(decision.required_roles) == {"super_admin", "operations_manager"}


@pytest.mark.parametrize("role", [ActorRole.SUPER_ADMIN, ActorRole.OPERATIONS_MANAGER])
def test_privileged_roles_can_mark_picked(role):
    assert validate_transition(BookingStatus.CONFIRMED, BookingStatus.PICKED, role).allowed


def test_dispatcher_can_skip_picked():
    assert validate_transition(BookingStatus.CONFIRMED, BookingStatus.IN_TRANSIT, ActorRole.DISPATCHER).allowed


def test_backward_move_is_rejected():
    decision = validate_transition(BookingStatus.IN_TRANSIT, BookingStatus.CONFIRMED, ActorRole.SUPER_ADMIN)
    assert decision.code == "BACKWARD_TRANSITION"


def test_skipping_ahead_past_the_table_is_rejected():
    decision = validate_transition(BookingStatus.CONFIRMED, BookingStatus.DELIVERED, ActorRole.SUPER_ADMIN)
    assert decision.code == "INVALID_TRANSITION"


def test_unknown_values_are_rejected():
    assert validate_transition("confirmed", "lost", "super_admin").code == "UNKNOWN_STATUS"
    assert validate_transition("confirmed", "in_transit", "driver").code == "UNKNOWN_ROLE"


def test_apply_transition_appends_one_tracking_entry():
    booking = _booking(BookingStatus.CONFIRMED)
    actor = Actor("disp-7", ActorRole.DISPATCHER)

    entry = apply_transition(booking, BookingStatus.IN_TRANSIT, actor, location="N1 Highway", notes="Left depot")

    assert booking.status == BookingStatus.IN_TRANSIT
    assert booking.tracking == [entry]
    assert entry.status == "in_transit"
    assert entry.actor_id == "disp-7"
    assert entry.actor_role == "dispatcher"
    assert entry.location == "N1 Highway"


def test_rejected_transition_leaves_booking_untouched():
    booking = _booking(BookingStatus.CONFIRMED)

    with pytest.raises(InvalidTransitionError) as exc_info:
        apply_transition(booking, BookingStatus.PICKED, Actor("disp-7", ActorRole.DISPATCHER))

    assert exc_info.value.code == "INSUFFICIENT_ROLE"
    assert exc_info.value.detail["from"] == "confirmed"
    assert exc_info.value.detail["to"] == "picked"
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.tracking == []


INVALID_PAIRS = [
    (current, target)
    for current in ALL_STATUSES
    for target in ALL_STATUSES
    if current in TERMINAL_STATES
    or (target != BookingStatus.CANCELLED and target not in TRANSITIONS[current])
]


def _snapshot(entries):
    return [(e.status, e.location, e.notes, e.actor_id, e.created_at) for e in entries]


@pytest.mark.parametrize("current, target", INVALID_PAIRS)
def test_apply_transition_rejects_every_pair_outside_the_table(current, target):
    booking = _booking(current)
    booking.tracking.append(TrackingEntry(
        status=current.value, location="Denver depot", notes="earlier", actor_id="ops-1",
        actor_role="operations_manager", created_at=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc),
    ))
    before = _snapshot(booking.tracking)

    with pytest.raises(InvalidTransitionError):
        apply_transition(booking, target, Actor("ops-1", ActorRole.SUPER_ADMIN))

    assert booking.status == current
    assert _snapshot(booking.tracking) == before


def test_unknown_current_status_is_named_in_message():
    decision = validate_transition("misplaced", "in_transit", "super_admin")
    assert decision.code == "UNKNOWN_STATUS"
    assert "misplaced" in decision.message

    decision = validate_transition("confirmed", "lost", "super_admin")
    assert "lost" in decision.message
