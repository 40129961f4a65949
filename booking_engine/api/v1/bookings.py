from fastapi import APIRouter, Depends, HTTPException

from booking_engine.api.v1.schemas import (
    BookingCreateSchema,
    BookingSchema,
    ReminderRequestSchema,
    ReminderSpecSchema,
    ScheduledReminderSchema,
    SeriesCreateSchema,
    SeriesResultSchema,
    SkippedOccurrenceSchema,
    StatusChangeSchema,
)
from booking_engine.application.exceptions import (
    BookingEngineError,
    BookingNotFound,
    ConflictError,
    InfrastructureError,
    InvalidTransition,
    ReminderNotFound,
    ValidationError,
)
from booking_engine.application.use_cases.booking_series import BookingSeriesCoordinator
from booking_engine.domain.entities.booking import BookingRequest
from booking_engine.domain.entities.recurrence import RecurrenceSpec
from booking_engine.domain.entities.reminder import ReminderSpec
from booking_engine.domain.entities.travel import Coordinates
from booking_engine.wiring.dependencies import get_coordinator

router = APIRouter()


def _to_request(req: BookingCreateSchema) -> BookingRequest:
    return BookingRequest(
        title=req.title,
        start_time=req.start_time,
        end_time=req.end_time,
        description=req.description,
        notes=req.notes,
        timezone=req.timezone,
        location=req.location,
        coordinates=(
            Coordinates(latitude=req.coordinates.latitude, longitude=req.coordinates.longitude)
            if req.coordinates
            else None
        ),
        client_id=req.client_id,
        service_id=req.service_id,
        assigned_member_id=req.assigned_member_id,
    )


def _to_specs(items: list[ReminderSpecSchema]) -> list[ReminderSpec]:
    return [
        ReminderSpec(
            offset=item.offset,
            channel=item.channel,
            recipient=item.recipient,
            minutes_before=item.minutes_before,
        )
        for item in items
    ]


def _http_error(e: BookingEngineError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, (BookingNotFound, ReminderNotFound)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConflictError):
        conflicting_id = getattr(e.conflicting, "id", None)
        return HTTPException(status_code=409, detail={"reason": e.reason, "conflicting_id": conflicting_id})
    if isinstance(e, InvalidTransition):
        return HTTPException(
            status_code=409,
            detail={"current": e.current.value, "requested": e.requested.value, "message": str(e)},
        )
    if isinstance(e, InfrastructureError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.post("/{scope}/bookings", response_model=BookingSchema, status_code=201)
def create_booking(
    scope: str,
    req: BookingCreateSchema,
    coordinator: BookingSeriesCoordinator = Depends(get_coordinator),
):
    try:
        booking = coordinator.create_booking(scope, _to_request(req), _to_specs(req.reminders))
    except BookingEngineError as e:
        raise _http_error(e)
    return BookingSchema.from_entity(booking)


@router.post("/{scope}/series", response_model=SeriesResultSchema, status_code=201)
def create_series(
    scope: str,
    req: SeriesCreateSchema,
    coordinator: BookingSeriesCoordinator = Depends(get_coordinator),
):
    recurrence = RecurrenceSpec(
        pattern=req.recurrence.pattern,
        interval=req.recurrence.interval,
        days_of_week=frozenset(req.recurrence.days_of_week),
        after_count=req.recurrence.after_count,
        until_date=req.recurrence.until_date,
    )
    try:
        result = coordinator.create_recurring_series(scope, _to_request(req), recurrence, _to_specs(req.reminders))
    except BookingEngineError as e:
        raise _http_error(e)

    return SeriesResultSchema(
        series_id=result.series_id,
        created=[BookingSchema.from_entity(b) for b in result.created],
        skipped=[SkippedOccurrenceSchema.from_entity(s) for s in result.skipped],
    )


@router.get("/{scope}/series/{series_id}", response_model=list[BookingSchema])
def get_series(
    scope: str,
    series_id: str,
    coordinator: BookingSeriesCoordinator = Depends(get_coordinator),
):
    return [BookingSchema.from_entity(b) for b in coordinator.get_series(scope, series_id)]


@router.post("/{scope}/bookings/{booking_id}/status", response_model=BookingSchema)
def change_status(
    scope: str,
    booking_id: str,
    req: StatusChangeSchema,
    coordinator: BookingSeriesCoordinator = Depends(get_coordinator),
):
    try:
        booking = coordinator.transition_status(scope, booking_id, req.status, reason=req.reason)
    except BookingEngineError as e:
        raise _http_error(e)
    return BookingSchema.from_entity(booking)


@router.post("/{scope}/bookings/{booking_id}/reminders", response_model=list[ScheduledReminderSchema])
def schedule_reminders(
    scope: str,
    booking_id: str,
    req: ReminderRequestSchema,
    coordinator: BookingSeriesCoordinator = Depends(get_coordinator),
):
    try:
        reminders = coordinator.schedule_reminders(scope, booking_id, _to_specs(req.reminders))
    except BookingEngineError as e:
        raise _http_error(e)
    return [ScheduledReminderSchema.from_entity(r) for r in reminders]


@router.get("/{scope}/reminders/due", response_model=list[ScheduledReminderSchema])
def due_reminders(
    scope: str,
    coordinator: BookingSeriesCoordinator = Depends(get_coordinator),
):
    try:
        reminders = coordinator.get_due_reminders(scope)
    except BookingEngineError as e:
        raise _http_error(e)
    return [ScheduledReminderSchema.from_entity(r) for r in reminders]


@router.post("/{scope}/bookings/{booking_id}/reminders/{reminder_id}/sent", response_model=ScheduledReminderSchema)
def mark_reminder_sent(
    scope: str,
    booking_id: str,
    reminder_id: str,
    coordinator: BookingSeriesCoordinator = Depends(get_coordinator),
):
    try:
        reminder = coordinator.mark_reminder_sent(scope, booking_id, reminder_id)
    except BookingEngineError as e:
        raise _http_error(e)
    return ScheduledReminderSchema.from_entity(reminder)
