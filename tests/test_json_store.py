"""
Tests for durable booking persistence.
"""

from __future__ import annotations

import tempfile
from datetime import timedelta
from pathlib import Path

import pytest

from booking_engine.application.exceptions import InfrastructureError
from booking_engine.domain.entities.availability import AvailabilityBlock, BlockKind
from booking_engine.domain.entities.booking import Booking, BookingStatus
from booking_engine.domain.entities.recurrence import RecurrencePattern, RecurrenceSpec
from booking_engine.domain.entities.reminder import ReminderOffset, ReminderSpec, ReminderStatus, ScheduledReminder
from booking_engine.domain.entities.time_window import TimeWindow
from booking_engine.domain.entities.travel import TravelEstimate
from booking_engine.infrastructure.store.json_store import JsonBookingStore

from conftest import OAKLAND, SCOPE, at


def _booking(booking_id: str = "b1", **overrides) -> Booking:
    fields = dict(
        id=booking_id,
        scope=SCOPE,
        title="Engagement shoot",
        start_time=at(2025, 1, 6),
        end_time=at(2025, 1, 6, 11),
        status=BookingStatus.confirmed,
        location="Lake Merritt",
        coordinates=OAKLAND,
        assigned_member_id="alex",
        travel=TravelEstimate(distance_miles=20.0, travel_time_minutes=30, fee_cents=325),
        created_at=at(2025, 1, 1, 9),
    )
    fields.update(overrides)
    return Booking(**fields)


def test_booking_survives_a_new_store_instance():
    """Bookings written by one store instance are read back by another."""
    with tempfile.TemporaryDirectory() as tmpdir:
        booking = _booking()
        JsonBookingStore(data_dir=tmpdir).save(booking)

        retrieved = JsonBookingStore(data_dir=tmpdir).get(SCOPE, "b1")

        assert retrieved == booking
        assert retrieved.start_time.utcoffset() == timedelta(hours=-5)
        assert JsonBookingStore(data_dir=tmpdir).get("other_org", "b1") is None


def test_series_listing_is_ordered_by_start():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonBookingStore(data_dir=tmpdir)
        store.save(_booking("late", series_id="s1", start_time=at(2025, 1, 13), end_time=at(2025, 1, 13, 11)))
        store.save(_booking("early", series_id="s1"))
        store.save(_booking("loose"))

        assert [b.id for b in store.list_series(SCOPE, "s1")] == ["early", "late"]


def test_find_conflicting_reads_bookings_and_blocks():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonBookingStore(data_dir=tmpdir)
        store.save(_booking())
        store.save(_booking("gone", status=BookingStatus.cancelled))
        store.add_block(
            SCOPE,
            AvailabilityBlock(id="lunch", kind=BlockKind.personal, start=at(2025, 1, 6, 10, 30), end=at(2025, 1, 6, 12)),
        )

        found = store.find_conflicting(SCOPE, "alex", TimeWindow(at(2025, 1, 6, 10), at(2025, 1, 6, 11)))
        excluded = store.find_conflicting(
            SCOPE, "alex", TimeWindow(at(2025, 1, 6, 10), at(2025, 1, 6, 11)), exclude_booking_id="b1"
        )

        assert [(block.id, block.kind) for block in found] == [("b1", BlockKind.booking), ("lunch", BlockKind.personal)]
        assert [block.id for block in excluded] == ["lunch"]


def test_reminders_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonBookingStore(data_dir=tmpdir)
        reminders = [
            ScheduledReminder(
                fire_at=at(2025, 1, 5),
                spec=ReminderSpec(offset=ReminderOffset.custom, minutes_before=1440),
                booking_id="b1",
                status=ReminderStatus.sent,
            )
        ]
        store.save_reminders(SCOPE, "b1", reminders)

        assert JsonBookingStore(data_dir=tmpdir).get_reminders(SCOPE, "b1") == reminders
        assert store.get_reminders(SCOPE, "unknown") == []


def test_corrupt_file_raises_infrastructure_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        Path(tmpdir, f"{SCOPE}.json").write_text("{not json", encoding="utf-8")
        store = JsonBookingStore(data_dir=tmpdir)

        with pytest.raises(InfrastructureError):
            store.get(SCOPE, "b1")


def test_recurrence_is_stored_with_the_booking():
    with tempfile.TemporaryDirectory() as tmpdir:
        recurrence = RecurrenceSpec(
            pattern=RecurrencePattern.custom,
            days_of_week=frozenset({1, 3}),
            until_date=at(2025, 3, 31),
        )
        booking = _booking(series_id="s1", recurrence=recurrence)
        JsonBookingStore(data_dir=tmpdir).save(booking)

        retrieved = JsonBookingStore(data_dir=tmpdir).get(SCOPE, "b1")

        assert retrieved.recurrence == recurrence
        assert retrieved == booking


def test_unassigned_booking_conflicts_with_a_member():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonBookingStore(data_dir=tmpdir)
        store.save(_booking("open", assigned_member_id=None))
        store.save(_booking("other", assigned_member_id="sam"))

        found = store.find_conflicting(SCOPE, "alex", TimeWindow(at(2025, 1, 6, 10), at(2025, 1, 6, 11)))

        assert [block.id for block in found] == ["open"]


def test_sent_reminder_persists_across_instances():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonBookingStore(data_dir=tmpdir)
        spec = ReminderSpec(offset=ReminderOffset.hours_24)
        store.save_reminders(
            SCOPE,
            "b1",
            [
                ScheduledReminder(fire_at=at(2025, 1, 5, 10), spec=spec, booking_id="b1", id="r2"),
                ScheduledReminder(fire_at=at(2025, 1, 20), spec=spec, booking_id="b1", id="r3"),
            ],
        )
        store.save_reminders(
            SCOPE, "b2", [ScheduledReminder(fire_at=at(2025, 1, 4), spec=spec, booking_id="b2", id="r1")]
        )
        now = at(2025, 1, 5, 10)

        assert [r.id for r in store.get_due_reminders(SCOPE, now)] == ["r1", "r2"]

        sent = store.mark_reminder_sent(SCOPE, "b1", "r2", now)
        reopened = JsonBookingStore(data_dir=tmpdir)

        assert sent.status == ReminderStatus.sent
        assert reopened.get_reminders(SCOPE, "b1")[0] == sent
        assert reopened.get_reminders(SCOPE, "b1")[0].sent_at == now
        assert [r.id for r in reopened.get_due_reminders(SCOPE, now)] == ["r1"]
        assert reopened.mark_reminder_sent(SCOPE, "b1", "missing", now) is None
