from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from booking_engine.application.exceptions import InvalidTransition
from booking_engine.domain.entities.booking import Booking, BookingStatus

INITIAL_STATUS = BookingStatus.pending

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.pending: frozenset({BookingStatus.confirmed, BookingStatus.cancelled}),
    BookingStatus.confirmed: frozenset({BookingStatus.completed, BookingStatus.cancelled}),
    BookingStatus.completed: frozenset(),
    BookingStatus.cancelled: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


class BookingLifecycle:
    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def can_transition(self, current: BookingStatus, requested: BookingStatus) -> bool:
        return requested in ALLOWED_TRANSITIONS[current]

    def transition(
        self,
        booking: Booking,
        requested: BookingStatus,
        now: datetime,
        reason: str | None = None,
    ) -> Booking:
        """Return a copy of the booking in the requested status, stamped with the transition time."""
        requested = BookingStatus(requested)
        if not self.can_transition(booking.status, requested):
            raise InvalidTransition(booking.status, requested)

        changes: dict[str, object] = {"status": requested}
        if requested == BookingStatus.confirmed:
            changes["confirmed_at"] = now
        elif requested == BookingStatus.completed:
            changes["completed_at"] = now
        elif requested == BookingStatus.cancelled:
            changes["cancelled_at"] = now
            changes["cancellation_reason"] = reason

        self._logger.info(
            "Booking status changed",
            extra={"booking_id": booking.id, "from_status": booking.status.value, "to_status": requested.value},
        )
        return replace(booking, **changes)
