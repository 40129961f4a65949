from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from booking_engine.domain.entities.availability import AvailabilityBlock
from booking_engine.domain.entities.booking import Booking
from booking_engine.domain.entities.reminder import ScheduledReminder
from booking_engine.domain.entities.time_window import TimeWindow


class BookingStorePort(ABC):
    @abstractmethod
    def find_conflicting(
        self,
        scope: str,
        member_id: str | None,
        window: TimeWindow,
        exclude_booking_id: str | None = None,
    ) -> list[AvailabilityBlock]:
        """
        Return candidate busy intervals for the member (and organization-wide ones).

        A None member sees every active booking; a named member also sees
        unassigned bookings.

        Bookings are returned as blocks of kind "booking". Recurring blocks are
        returned unexpanded; callers do the exact overlap math.
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, booking: Booking) -> Booking:
        raise NotImplementedError

    @abstractmethod
    def get(self, scope: str, booking_id: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    def list_series(self, scope: str, series_id: str) -> list[Booking]:
        """Return series members ordered by start time."""
        raise NotImplementedError

    @abstractmethod
    def add_block(self, scope: str, block: AvailabilityBlock) -> AvailabilityBlock:
        raise NotImplementedError

    @abstractmethod
    def save_reminders(self, scope: str, booking_id: str, reminders: list[ScheduledReminder]) -> None:
        """Replace the stored reminder set for a booking."""
        raise NotImplementedError

    @abstractmethod
    def get_reminders(self, scope: str, booking_id: str) -> list[ScheduledReminder]:
        raise NotImplementedError

    @abstractmethod
    def get_due_reminders(self, scope: str, now: datetime) -> list[ScheduledReminder]:
        """Scheduled (unsent, unsuppressed) reminders with fire_at <= now, ordered by fire_at."""
        raise NotImplementedError

    @abstractmethod
    def mark_reminder_sent(
        self,
        scope: str,
        booking_id: str,
        reminder_id: str,
        sent_at: datetime,
    ) -> ScheduledReminder | None:
        """
        Flip a scheduled reminder to sent and return it.

        Reminders that are already sent or suppressed are returned unchanged.
        Returns None when the booking has no reminder with that id.
        """
        raise NotImplementedError
