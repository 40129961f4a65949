from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime

from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.domain.entities.availability import AvailabilityBlock, BlockKind
from booking_engine.domain.entities.booking import Booking
from booking_engine.domain.entities.reminder import ReminderStatus, ScheduledReminder
from booking_engine.domain.entities.time_window import TimeWindow


class MemoryBookingStore(BookingStorePort):
    def __init__(self) -> None:
        self._bookings: dict[str, dict[str, Booking]] = {}
        self._blocks: dict[str, list[AvailabilityBlock]] = {}
        self._reminders: dict[tuple[str, str], list[ScheduledReminder]] = {}
        self._lock = threading.Lock()

    def find_conflicting(
        self,
        scope: str,
        member_id: str | None,
        window: TimeWindow,
        exclude_booking_id: str | None = None,
    ) -> list[AvailabilityBlock]:
        with self._lock:
            bookings = list(self._bookings.get(scope, {}).values())
            blocks = list(self._blocks.get(scope, []))

        result = [
            booking_as_block(booking)
            for booking in bookings
            if booking.id != exclude_booking_id
            and booking.is_active
            and shares_calendar(booking, member_id)
            and window.overlaps(TimeWindow(booking.start_time, booking.end_time))
        ]
        result.extend(block for block in blocks if block_may_overlap(block, member_id, window))
        return result

    def save(self, booking: Booking) -> Booking:
        with self._lock:
            self._bookings.setdefault(booking.scope, {})[booking.id] = booking
        return booking

    def get(self, scope: str, booking_id: str) -> Booking | None:
        with self._lock:
            return self._bookings.get(scope, {}).get(booking_id)

    def list_series(self, scope: str, series_id: str) -> list[Booking]:
        with self._lock:
            members = [b for b in self._bookings.get(scope, {}).values() if b.series_id == series_id]
        return sorted(members, key=lambda b: b.start_time)

    def add_block(self, scope: str, block: AvailabilityBlock) -> AvailabilityBlock:
        with self._lock:
            self._blocks.setdefault(scope, []).append(block)
        return block

    def save_reminders(self, scope: str, booking_id: str, reminders: list[ScheduledReminder]) -> None:
        with self._lock:
            self._reminders[(scope, booking_id)] = list(reminders)

    def get_reminders(self, scope: str, booking_id: str) -> list[ScheduledReminder]:
        with self._lock:
            return list(self._reminders.get((scope, booking_id), []))

    def get_due_reminders(self, scope: str, now: datetime) -> list[ScheduledReminder]:
        with self._lock:
            due = [
                reminder
                for (reminder_scope, _), reminders in self._reminders.items()
                if reminder_scope == scope
                for reminder in reminders
                if reminder.status == ReminderStatus.scheduled and reminder.fire_at <= now
            ]
        return sorted(due, key=lambda r: r.fire_at)

    def mark_reminder_sent(
        self,
        scope: str,
        booking_id: str,
        reminder_id: str,
        sent_at: datetime,
    ) -> ScheduledReminder | None:
        with self._lock:
            reminders = self._reminders.get((scope, booking_id), [])
            for position, reminder in enumerate(reminders):
                if reminder.id != reminder_id:
                    continue
                if reminder.status == ReminderStatus.scheduled:
                    reminder = replace(reminder, status=ReminderStatus.sent, sent_at=sent_at)
                    reminders[position] = reminder
                return reminder
        return None


def booking_as_block(booking: Booking) -> AvailabilityBlock:
    return AvailabilityBlock(
        id=booking.id,
        kind=BlockKind.booking,
        start=booking.start_time,
        end=booking.end_time,
        title=booking.title,
        member_id=booking.assigned_member_id,
        cancelled=not booking.is_active,
    )


def block_may_overlap(block: AvailabilityBlock, member_id: str | None, window: TimeWindow) -> bool:
    """Coarse pre-filter; recurring blocks are kept whenever their rule could still be running."""
    if block.member_id is not None and block.member_id != member_id:
        return False
    if block.recurrence_rule:
        if block.start >= window.end:
            return False
        return block.recurrence_end is None or block.recurrence_end >= window.start - (block.end - block.start)
    return window.overlaps(TimeWindow(block.start, block.end))


def shares_calendar(booking: Booking, member_id: str | None) -> bool:
    """An unassigned booking competes with every member, and every member competes with it."""
    return member_id is None or booking.assigned_member_id is None or booking.assigned_member_id == member_id
