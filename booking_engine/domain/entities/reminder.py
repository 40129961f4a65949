from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class ReminderOffset(str, Enum):
    hours_24 = "hours_24"
    hours_1 = "hours_1"
    custom = "custom"


class ReminderRecipient(str, Enum):
    client = "client"
    team = "team"
    both = "both"


class ReminderStatus(str, Enum):
    scheduled = "scheduled"
    suppressed = "suppressed"
    sent = "sent"


DEFAULT_CUSTOM_MINUTES_BEFORE = 1440


@dataclass(frozen=True)
class ReminderSpec:
    offset: ReminderOffset
    channel: str = "email"
    recipient: ReminderRecipient = ReminderRecipient.client
    minutes_before: int | None = None  # only read for custom offsets

    @property
    def lead_time(self) -> timedelta:
        if self.offset == ReminderOffset.hours_24:
            return timedelta(hours=24)
        if self.offset == ReminderOffset.hours_1:
            return timedelta(hours=1)
        minutes = self.minutes_before if self.minutes_before is not None else DEFAULT_CUSTOM_MINUTES_BEFORE
        return timedelta(minutes=minutes)


@dataclass(frozen=True)
class ScheduledReminder:
    fire_at: datetime
    spec: ReminderSpec
    fire_immediately: bool = False
    booking_id: str | None = None
    status: ReminderStatus = ReminderStatus.scheduled
    id: str | None = None
    sent_at: datetime | None = None
