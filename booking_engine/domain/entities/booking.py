from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from booking_engine.domain.entities.recurrence import RecurrenceSpec
from booking_engine.domain.entities.travel import Coordinates, TravelEstimate


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


@dataclass(frozen=True)
class Booking:
    id: str
    scope: str  # organization id
    title: str
    start_time: datetime
    end_time: datetime
    status: BookingStatus = BookingStatus.pending
    description: str | None = None
    notes: str | None = None
    timezone: str | None = None
    location: str | None = None
    coordinates: Coordinates | None = None
    client_id: str | None = None
    service_id: str | None = None
    assigned_member_id: str | None = None
    series_id: str | None = None
    occurrence_index: int = 0
    parent_booking_id: str | None = None  # first created occurrence of the series
    recurrence: RecurrenceSpec | None = None
    travel: TravelEstimate | None = None
    created_at: datetime | None = None
    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.cancelled

    @property
    def is_series_member(self) -> bool:
        return self.series_id is not None


@dataclass(frozen=True)
class BookingRequest:
    title: str
    start_time: datetime
    end_time: datetime
    description: str | None = None
    notes: str | None = None
    timezone: str | None = None
    location: str | None = None
    coordinates: Coordinates | None = None
    client_id: str | None = None
    service_id: str | None = None
    assigned_member_id: str | None = None
