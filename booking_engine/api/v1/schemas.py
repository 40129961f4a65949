from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from booking_engine.application.use_cases.recurrence import describe_recurrence
from booking_engine.domain.entities.booking import Booking, BookingStatus
from booking_engine.domain.entities.recurrence import RecurrencePattern, RecurrenceSpec
from booking_engine.domain.entities.reminder import ReminderOffset, ReminderRecipient, ScheduledReminder
from booking_engine.domain.entities.series import SkippedOccurrence


class CoordinatesSchema(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class ReminderSpecSchema(BaseModel):
    offset: ReminderOffset
    channel: str = "email"
    recipient: ReminderRecipient = ReminderRecipient.client
    minutes_before: int | None = Field(default=None, gt=0)

    @field_validator("recipient", mode="before")
    @classmethod
    def _photographer_means_team(cls, value: Any) -> Any:
        return "team" if value == "photographer" else value


class BookingCreateSchema(BaseModel):
    title: str = Field(min_length=1)
    start_time: datetime
    end_time: datetime
    description: str | None = None
    notes: str | None = None
    timezone: str | None = None
    location: str | None = None
    coordinates: CoordinatesSchema | None = None
    client_id: str | None = None
    service_id: str | None = None
    assigned_member_id: str | None = None
    reminders: list[ReminderSpecSchema] = Field(default_factory=list)


class RecurrenceSchema(BaseModel):
    pattern: RecurrencePattern
    interval: int = 1
    days_of_week: list[int] = Field(default_factory=list)
    after_count: int | None = None
    until_date: datetime | None = None

    @classmethod
    def from_entity(cls, spec: RecurrenceSpec) -> "RecurrenceSchema":
        return cls(
            pattern=spec.pattern,
            interval=spec.interval,
            days_of_week=sorted(spec.days_of_week),
            after_count=spec.after_count,
            until_date=spec.until_date,
        )


class SeriesCreateSchema(BookingCreateSchema):
    recurrence: RecurrenceSchema


class StatusChangeSchema(BaseModel):
    status: BookingStatus
    reason: str | None = None


class ReminderRequestSchema(BaseModel):
    reminders: list[ReminderSpecSchema] = Field(min_length=1)


class TravelSchema(BaseModel):
    distance_miles: float
    travel_time_minutes: int
    fee_cents: int


class BookingSchema(BaseModel):
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    timezone: str | None = None
    location: str | None = None
    coordinates: CoordinatesSchema | None = None
    client_id: str | None = None
    service_id: str | None = None
    assigned_member_id: str | None = None
    series_id: str | None = None
    occurrence_index: int = 0
    parent_booking_id: str | None = None
    recurrence: RecurrenceSchema | None = None
    recurrence_summary: str | None = None
    travel: TravelSchema | None = None

    @classmethod
    def from_entity(cls, booking: Booking) -> "BookingSchema":
        return cls(
            id=booking.id,
            title=booking.title,
            start_time=booking.start_time,
            end_time=booking.end_time,
            status=booking.status,
            timezone=booking.timezone,
            location=booking.location,
            coordinates=(
                CoordinatesSchema(latitude=booking.coordinates.latitude, longitude=booking.coordinates.longitude)
                if booking.coordinates
                else None
            ),
            client_id=booking.client_id,
            service_id=booking.service_id,
            assigned_member_id=booking.assigned_member_id,
            series_id=booking.series_id,
            occurrence_index=booking.occurrence_index,
            parent_booking_id=booking.parent_booking_id,
            recurrence=RecurrenceSchema.from_entity(booking.recurrence) if booking.recurrence else None,
            recurrence_summary=describe_recurrence(booking.recurrence) if booking.recurrence else None,
            travel=(
                TravelSchema(
                    distance_miles=booking.travel.distance_miles,
                    travel_time_minutes=booking.travel.travel_time_minutes,
                    fee_cents=booking.travel.fee_cents,
                )
                if booking.travel
                else None
            ),
        )


class SkippedOccurrenceSchema(BaseModel):
    occurrence_index: int
    start_time: datetime
    end_time: datetime
    reason: str
    conflicting_id: str | None = None

    @classmethod
    def from_entity(cls, skipped: SkippedOccurrence) -> "SkippedOccurrenceSchema":
        return cls(
            occurrence_index=skipped.occurrence_index,
            start_time=skipped.window.start,
            end_time=skipped.window.end,
            reason=skipped.reason,
            conflicting_id=skipped.conflicting.id if skipped.conflicting else None,
        )


class SeriesResultSchema(BaseModel):
    series_id: str
    created: list[BookingSchema]
    skipped: list[SkippedOccurrenceSchema]


class ScheduledReminderSchema(BaseModel):
    id: str | None = None
    booking_id: str | None = None
    fire_at: datetime
    offset: ReminderOffset
    channel: str
    recipient: ReminderRecipient
    fire_immediately: bool
    status: str
    sent_at: datetime | None = None

    @classmethod
    def from_entity(cls, reminder: ScheduledReminder) -> "ScheduledReminderSchema":
        return cls(
            id=reminder.id,
            booking_id=reminder.booking_id,
            fire_at=reminder.fire_at,
            offset=reminder.spec.offset,
            channel=reminder.spec.channel,
            recipient=reminder.spec.recipient,
            fire_immediately=reminder.fire_immediately,
            status=reminder.status.value,
            sent_at=reminder.sent_at,
        )
