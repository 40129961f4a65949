from __future__ import annotations

import pytest

from booking_engine.application.exceptions import InvalidTransition
from booking_engine.application.use_cases.lifecycle import INITIAL_STATUS, BookingLifecycle
from booking_engine.domain.entities.booking import Booking, BookingStatus

from conftest import NOW, SCOPE, at


def _booking(status: BookingStatus = INITIAL_STATUS) -> Booking:
    return Booking(id="b1", scope=SCOPE, title="Listing shoot", start_time=at(2025, 1, 6), end_time=at(2025, 1, 6, 11), status=status)


def test_initial_status_is_pending():
    assert INITIAL_STATUS == BookingStatus.pending
    assert _booking().status == BookingStatus.pending


def test_pending_to_confirmed_to_completed():
    lifecycle = BookingLifecycle()

    confirmed = lifecycle.transition(_booking(), BookingStatus.confirmed, NOW)
    completed = lifecycle.transition(confirmed, BookingStatus.completed, NOW)

    assert confirmed.status == BookingStatus.confirmed
    assert confirmed.confirmed_at == NOW
    assert completed.status == BookingStatus.completed
    assert completed.completed_at == NOW


def test_pending_cannot_jump_to_completed():
    with pytest.raises(InvalidTransition) as exc_info:
        BookingLifecycle().transition(_booking(), BookingStatus.completed, NOW)

    assert exc_info.value.current == BookingStatus.pending
    assert exc_info.value.requested == BookingStatus.completed


@pytest.mark.parametrize("terminal", [BookingStatus.completed, BookingStatus.cancelled])
@pytest.mark.parametrize("target", list(BookingStatus))
def test_terminal_states_have_no_exits(terminal, target):
    with pytest.raises(InvalidTransition):
        BookingLifecycle().transition(_booking(terminal), target, NOW)


@pytest.mark.parametrize("source", [BookingStatus.pending, BookingStatus.confirmed])
def test_cancel_from_open_states(source):
    cancelled = BookingLifecycle().transition(_booking(source), BookingStatus.cancelled, NOW, reason="client request")

    assert cancelled.status == BookingStatus.cancelled
    assert cancelled.cancelled_at == NOW
    assert cancelled.cancellation_reason == "client request"


def test_confirming_twice_is_not_silently_accepted():
    confirmed = _booking(BookingStatus.confirmed)

    with pytest.raises(InvalidTransition):
        BookingLifecycle().transition(confirmed, BookingStatus.confirmed, NOW)


def test_transition_does_not_mutate_original():
    original = _booking()

    BookingLifecycle().transition(original, BookingStatus.confirmed, NOW)

    assert original.status == BookingStatus.pending
