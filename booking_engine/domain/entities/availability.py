from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum


class BlockKind(str, Enum):
    booking = "booking"
    time_off = "time_off"
    holiday = "holiday"
    personal = "personal"


class BlockStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


@dataclass(frozen=True)
class AvailabilityBlock:
    id: str
    kind: BlockKind
    start: datetime
    end: datetime
    title: str | None = None
    member_id: str | None = None  # None applies to the whole organization
    status: BlockStatus = BlockStatus.approved
    recurrence_rule: str | None = None  # RRULE body, e.g. "FREQ=WEEKLY;BYDAY=SU"
    recurrence_end: datetime | None = None
    cancelled: bool = False  # only meaningful for kind == booking


@dataclass(frozen=True)
class BusinessHours:
    # weekday (0=Sunday .. 6=Saturday) -> (open, close) in business-local time;
    # a missing weekday means closed
    hours: dict[int, tuple[time, time]] = field(default_factory=dict)


@dataclass(frozen=True)
class BookingPolicy:
    buffer_before_minutes: int = 0
    buffer_after_minutes: int = 0
    min_advance_hours: int = 0
    max_advance_days: int | None = None


@dataclass(frozen=True)
class AvailabilityResult:
    ok: bool
    reason: str | None = None
    conflicting: AvailabilityBlock | None = None  # None for business-hours conflicts
