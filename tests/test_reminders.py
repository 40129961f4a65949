from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

from booking_engine.application.use_cases.reminders import ReminderScheduler
from booking_engine.domain.entities.reminder import ReminderOffset, ReminderRecipient, ReminderSpec, ReminderStatus

from conftest import NOW

DAY_BEFORE = ReminderSpec(offset=ReminderOffset.hours_24)
HOUR_BEFORE = ReminderSpec(offset=ReminderOffset.hours_1, channel="sms", recipient=ReminderRecipient.both)


def test_hours_24_fires_a_day_before():
    start = NOW + timedelta(days=3)

    (reminder,) = ReminderScheduler().schedule(start, [DAY_BEFORE], NOW)

    assert reminder.fire_at == start - timedelta(hours=24)
    assert reminder.fire_immediately is False
    assert reminder.status == ReminderStatus.scheduled


def test_past_fire_time_is_kept_and_flagged():
    start = NOW + timedelta(hours=5)

    (reminder,) = ReminderScheduler().schedule(start, [DAY_BEFORE], NOW)

    assert reminder.fire_at == start - timedelta(hours=24)
    assert reminder.fire_immediately is True


def test_custom_offsets():
    start = NOW + timedelta(days=3)
    specs = [
        ReminderSpec(offset=ReminderOffset.custom, minutes_before=90),
        ReminderSpec(offset=ReminderOffset.custom),
    ]

    reminders = ReminderScheduler().schedule(start, specs, NOW)

    assert [r.fire_at for r in reminders] == [start - timedelta(minutes=1440), start - timedelta(minutes=90)]


def test_results_are_ordered_and_not_deduplicated():
    start = NOW + timedelta(days=3)

    reminders = ReminderScheduler().schedule(start, [HOUR_BEFORE, DAY_BEFORE, HOUR_BEFORE], NOW, booking_id="b1")

    assert [r.spec.offset for r in reminders] == [ReminderOffset.hours_24, ReminderOffset.hours_1, ReminderOffset.hours_1]
    assert all(r.booking_id == "b1" for r in reminders)


def test_suppress_pending_leaves_sent_reminders_alone():
    scheduler = ReminderScheduler()
    sent, pending = scheduler.schedule(NOW + timedelta(days=3), [DAY_BEFORE, HOUR_BEFORE], NOW)
    sent = replace(sent, status=ReminderStatus.sent)

    result = scheduler.suppress_pending([sent, pending])

    assert [r.status for r in result] == [ReminderStatus.sent, ReminderStatus.suppressed]


def test_fire_time_equal_to_now_is_not_past_due():
    start = NOW + timedelta(hours=1)

    (on_time,) = ReminderScheduler().schedule(start, [HOUR_BEFORE], NOW)
    (late,) = ReminderScheduler().schedule(start, [HOUR_BEFORE], NOW + timedelta(seconds=1))

    assert on_time.fire_at == NOW
    assert on_time.fire_immediately is False
    assert late.fire_immediately is True
