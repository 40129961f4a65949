from __future__ import annotations

import logging
import uuid
from contextlib import nullcontext
from dataclasses import dataclass, replace
from datetime import datetime, timezone as dt_timezone
from typing import Callable, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_engine.application.exceptions import BookingNotFound, ConflictError, ReminderNotFound, ValidationError
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.ports.geocoder import GeocoderPort
from booking_engine.application.ports.home_base import HomeBasePort
from booking_engine.application.ports.reservation_lock import ReservationLockPort
from booking_engine.application.use_cases.availability import AvailabilityChecker
from booking_engine.application.use_cases.lifecycle import INITIAL_STATUS, TERMINAL_STATUSES, BookingLifecycle
from booking_engine.application.use_cases.recurrence import RecurrenceExpander
from booking_engine.application.use_cases.reminders import ReminderScheduler
from booking_engine.application.use_cases.travel import TravelEstimator
from booking_engine.application.utils.date_helpers import is_aware
from booking_engine.domain.entities.availability import AvailabilityResult
from booking_engine.domain.entities.booking import Booking, BookingRequest, BookingStatus
from booking_engine.domain.entities.recurrence import RecurrenceSpec
from booking_engine.domain.entities.reminder import ReminderSpec, ReminderStatus, ScheduledReminder
from booking_engine.domain.entities.series import SeriesResult, SkippedOccurrence
from booking_engine.domain.entities.time_window import TimeWindow
from booking_engine.domain.entities.travel import Coordinates, TravelEstimate


@dataclass(frozen=True)
class SeriesUpdate:
    """Fields to change on series members; None leaves a field untouched."""

    title: str | None = None
    description: str | None = None
    notes: str | None = None
    location: str | None = None
    coordinates: Coordinates | None = None
    client_id: str | None = None
    service_id: str | None = None


def _utc_now() -> datetime:
    return datetime.now(dt_timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class BookingSeriesCoordinator:
    def __init__(
        self,
        store: BookingStorePort,
        availability: AvailabilityChecker,
        expander: RecurrenceExpander,
        travel: TravelEstimator,
        lifecycle: BookingLifecycle,
        reminders: ReminderScheduler,
        timezone: ZoneInfo,
        home_base: HomeBasePort | None = None,
        geocoder: GeocoderPort | None = None,
        locks: ReservationLockPort | None = None,
        auto_travel: bool = True,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._store = store
        self._availability = availability
        self._expander = expander
        self._travel = travel
        self._lifecycle = lifecycle
        self._reminders = reminders
        self._timezone = timezone
        self._home_base = home_base
        self._geocoder = geocoder
        self._locks = locks
        self._auto_travel = auto_travel
        self._clock = clock
        self._id_factory = id_factory
        self._logger = logging.getLogger(__name__)

    # -- creation -----------------------------------------------------------

    def create_booking(
        self,
        scope: str,
        request: BookingRequest,
        reminders: Iterable[ReminderSpec] = (),
    ) -> Booking:
        window = self._validated_window(request)
        now = self._clock()
        self._availability.validate_advance_notice(window, now)

        coordinates = self._resolve_coordinates(request.location, request.coordinates)
        travel = self._estimate_travel(scope, request.assigned_member_id, coordinates)
        booking = self._build_booking(scope, request, window, coordinates, travel, now)

        result, saved = self.check_and_reserve(scope, booking)
        if saved is None:
            raise ConflictError(result.reason or "unavailable", result.conflicting)

        self._logger.info("Booking created", extra={"booking_id": saved.id, "scope": scope})
        specs = list(reminders)
        if specs:
            self._store_reminders(scope, saved, specs, now)
        return saved

    def create_recurring_series(
        self,
        scope: str,
        request: BookingRequest,
        recurrence: RecurrenceSpec,
        reminders: Iterable[ReminderSpec] = (),
    ) -> SeriesResult:
        """
        Create every occurrence of a series that fits the calendar.

        Conflicting occurrences are recorded as skipped and the remaining ones
        are still created. Validation problems fail before anything is written.
        """
        window = self._validated_window(request)
        tz = self._request_timezone(request)
        first_start = window.start.astimezone(tz)
        occurrences = self._expander.expand(recurrence, first_start, window.duration)

        now = self._clock()
        self._availability.validate_advance_notice(window, now)

        coordinates = self._resolve_coordinates(request.location, request.coordinates)
        travel = self._estimate_travel(scope, request.assigned_member_id, coordinates)
        specs = list(reminders)

        result = SeriesResult(series_id=self._id_factory())
        parent_id: str | None = None
        for index, occurrence in enumerate(occurrences):
            booking = self._build_booking(
                scope,
                request,
                occurrence,
                coordinates,
                travel,
                now,
                series_id=result.series_id,
                occurrence_index=index,
                parent_booking_id=parent_id,
                recurrence=recurrence,
            )
            try:
                availability, saved = self.check_and_reserve(scope, booking)
            except Exception:
                self._logger.error(
                    "Series creation interrupted",
                    extra={"series_id": result.series_id, "created_count": len(result.created)},
                )
                raise

            if saved is None:
                result.skipped.append(
                    SkippedOccurrence(
                        occurrence_index=index,
                        window=occurrence,
                        reason=availability.reason or "unavailable",
                        conflicting=availability.conflicting,
                    )
                )
                self._logger.info(
                    "Occurrence skipped",
                    extra={"series_id": result.series_id, "occurrence_index": index, "reason": availability.reason},
                )
                continue

            if parent_id is None:
                parent_id = saved.id
            if specs:
                self._store_reminders(scope, saved, specs, now)
            result.created.append(saved)

        self._logger.info(
            "Booking series created",
            extra={
                "series_id": result.series_id,
                "scope": scope,
                "created_count": len(result.created),
                "skipped_count": len(result.skipped),
            },
        )
        return result

    def check_and_reserve(
        self,
        scope: str,
        booking: Booking,
        exclude_booking_id: str | None = None,
    ) -> tuple[AvailabilityResult, Booking | None]:
        """
        Availability check and write as one step under the scope's reservation lock.

        Returns the availability result and the saved booking, or None when the
        window was not free.
        """
        lock = self._locks.hold(scope) if self._locks else nullcontext()
        with lock:
            result = self._availability.check(
                scope,
                TimeWindow(booking.start_time, booking.end_time),
                member_id=booking.assigned_member_id,
                exclude_booking_id=exclude_booking_id,
            )
            if not result.ok:
                return result, None
            return result, self._store.save(booking)

    # -- lifecycle ----------------------------------------------------------

    def transition_status(
        self,
        scope: str,
        booking_id: str,
        new_status: BookingStatus,
        reason: str | None = None,
    ) -> Booking:
        booking = self.get_booking(scope, booking_id)
        updated = self._lifecycle.transition(booking, new_status, self._clock(), reason=reason)
        saved = self._store.save(updated)

        if saved.status == BookingStatus.cancelled:
            existing = self._store.get_reminders(scope, booking_id)
            if existing:
                self._store.save_reminders(scope, booking_id, self._reminders.suppress_pending(existing))
        return saved

    def cancel_booking(self, scope: str, booking_id: str, reason: str | None = None) -> Booking:
        return self.transition_status(scope, booking_id, BookingStatus.cancelled, reason=reason)

    # -- reminders ----------------------------------------------------------

    def schedule_reminders(
        self,
        scope: str,
        booking_id: str,
        specs: Iterable[ReminderSpec],
    ) -> list[ScheduledReminder]:
        """Replace the booking's reminder set. Reminders already sent are kept."""
        booking = self.get_booking(scope, booking_id)
        if booking.status in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot schedule reminders for a {booking.status.value} booking")
        return self._store_reminders(scope, booking, list(specs), self._clock())

    def get_reminders(self, scope: str, booking_id: str) -> list[ScheduledReminder]:
        self.get_booking(scope, booking_id)
        return self._store.get_reminders(scope, booking_id)

    def get_due_reminders(self, scope: str, now: datetime | None = None) -> list[ScheduledReminder]:
        """Reminders that should go out now, oldest first. Sent and suppressed ones are excluded."""
        return self._store.get_due_reminders(scope, now or self._clock())

    def mark_reminder_sent(self, scope: str, booking_id: str, reminder_id: str) -> ScheduledReminder:
        self.get_booking(scope, booking_id)
        reminder = self._store.mark_reminder_sent(scope, booking_id, reminder_id, self._clock())
        if reminder is None:
            raise ReminderNotFound(f"Reminder {reminder_id} not found for booking {booking_id}")
        if reminder.status == ReminderStatus.suppressed:
            raise ValidationError(f"Reminder {reminder_id} was suppressed and cannot be sent")
        self._logger.info("Reminder sent", extra={"booking_id": booking_id, "reminder_id": reminder_id})
        return reminder

    # -- queries and edits --------------------------------------------------

    def get_booking(self, scope: str, booking_id: str) -> Booking:
        booking = self._store.get(scope, booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found")
        return booking

    def get_series(self, scope: str, series_id: str) -> list[Booking]:
        return self._store.list_series(scope, series_id)

    def update_series(
        self,
        scope: str,
        series_id: str,
        changes: SeriesUpdate,
        future_only: bool = True,
    ) -> list[Booking]:
        now = self._clock()
        members = [
            booking
            for booking in self._store.list_series(scope, series_id)
            if booking.status not in TERMINAL_STATUSES and (not future_only or booking.start_time >= now)
        ]
        fields = {key: value for key, value in vars(changes).items() if value is not None}
        if not fields or not members:
            return []

        relocating = "location" in fields or "coordinates" in fields
        if relocating:
            fields["coordinates"] = self._resolve_coordinates(fields.get("location"), fields.get("coordinates"))

        updated = []
        for booking in members:
            booking = replace(booking, **fields)
            if relocating:
                booking = replace(
                    booking,
                    travel=self._estimate_travel(scope, booking.assigned_member_id, booking.coordinates),
                )
            updated.append(self._store.save(booking))

        self._logger.info("Booking series updated", extra={"series_id": series_id, "updated": len(updated)})
        return updated

    def detach_from_series(self, scope: str, booking_id: str) -> Booking:
        """
        Take one booking out of its series without deleting anything.

        When the detached booking was the series parent, the earliest remaining
        member becomes the parent of the others.
        """
        booking = self.get_booking(scope, booking_id)
        if not booking.is_series_member:
            raise ValidationError(f"Booking {booking_id} is not part of a series")
        detached = self._store.save(
            replace(booking, series_id=None, occurrence_index=0, parent_booking_id=None, recurrence=None)
        )

        remaining = self._store.list_series(scope, booking.series_id) if booking.parent_booking_id is None else []
        if remaining:
            new_parent, *rest = remaining
            self._store.save(replace(new_parent, parent_booking_id=None))
            for member in rest:
                self._store.save(replace(member, parent_booking_id=new_parent.id))

        self._logger.info("Booking detached from series", extra={"booking_id": booking_id, "series_id": booking.series_id})
        return detached

    def reschedule_booking(
        self,
        scope: str,
        booking_id: str,
        start_time: datetime,
        end_time: datetime,
    ) -> Booking:
        booking = self._editable_booking(scope, booking_id)
        window = _validated(start_time, end_time)
        now = self._clock()
        self._availability.validate_advance_notice(window, now)

        moved = replace(booking, start_time=window.start, end_time=window.end)
        result, saved = self.check_and_reserve(scope, moved, exclude_booking_id=booking.id)
        if saved is None:
            raise ConflictError(result.reason or "unavailable", result.conflicting)

        existing = self._store.get_reminders(scope, booking_id)
        if any(reminder.status == ReminderStatus.scheduled for reminder in existing):
            self._store.save_reminders(scope, booking_id, [self._moved(reminder, saved, now) for reminder in existing])
        return saved

    def update_booking_location(
        self,
        scope: str,
        booking_id: str,
        location: str | None,
        coordinates: Coordinates | None = None,
    ) -> Booking:
        booking = self._editable_booking(scope, booking_id)
        resolved = self._resolve_coordinates(location, coordinates)
        relocated = replace(
            booking,
            location=location,
            coordinates=resolved,
            travel=self._estimate_travel(scope, booking.assigned_member_id, resolved),
        )
        return self._store.save(relocated)

    def assign_member(self, scope: str, booking_id: str, member_id: str | None) -> Booking:
        booking = self._editable_booking(scope, booking_id)
        reassigned = replace(
            booking,
            assigned_member_id=member_id,
            travel=self._estimate_travel(scope, member_id, booking.coordinates),
        )
        result, saved = self.check_and_reserve(scope, reassigned, exclude_booking_id=booking.id)
        if saved is None:
            raise ConflictError(result.reason or "unavailable", result.conflicting)
        return saved

    # -- helpers ------------------------------------------------------------

    def _editable_booking(self, scope: str, booking_id: str) -> Booking:
        booking = self.get_booking(scope, booking_id)
        if booking.status in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot change a {booking.status.value} booking")
        return booking

    def _request_timezone(self, request: BookingRequest) -> ZoneInfo:
        if not request.timezone:
            return self._timezone
        try:
            return ZoneInfo(request.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValidationError(f"Unknown timezone: {request.timezone}") from e

    def _validated_window(self, request: BookingRequest) -> TimeWindow:
        if not request.title or not request.title.strip():
            raise ValidationError("Booking title is required")
        return _validated(request.start_time, request.end_time)

    def _build_booking(
        self,
        scope: str,
        request: BookingRequest,
        window: TimeWindow,
        coordinates: Coordinates | None,
        travel: TravelEstimate | None,
        now: datetime,
        series_id: str | None = None,
        occurrence_index: int = 0,
        parent_booking_id: str | None = None,
        recurrence: RecurrenceSpec | None = None,
    ) -> Booking:
        return Booking(
            id=self._id_factory(),
            scope=scope,
            title=request.title.strip(),
            start_time=window.start,
            end_time=window.end,
            status=INITIAL_STATUS,
            description=request.description,
            notes=request.notes,
            timezone=request.timezone or self._timezone.key,
            location=request.location,
            coordinates=coordinates,
            client_id=request.client_id,
            service_id=request.service_id,
            assigned_member_id=request.assigned_member_id,
            series_id=series_id,
            occurrence_index=occurrence_index,
            parent_booking_id=parent_booking_id,
            recurrence=recurrence,
            travel=travel,
            created_at=now,
        )

    def _store_reminders(
        self,
        scope: str,
        booking: Booking,
        specs: list[ReminderSpec],
        now: datetime,
    ) -> list[ScheduledReminder]:
        scheduled = self._with_ids(self._reminders.schedule(booking.start_time, specs, now, booking_id=booking.id))
        sent = [
            reminder
            for reminder in self._store.get_reminders(scope, booking.id)
            if reminder.status == ReminderStatus.sent
        ]
        self._store.save_reminders(scope, booking.id, sent + scheduled)
        return scheduled

    def _with_ids(self, reminders: list[ScheduledReminder]) -> list[ScheduledReminder]:
        return [replace(reminder, id=self._id_factory()) for reminder in reminders]

    def _moved(self, reminder: ScheduledReminder, booking: Booking, now: datetime) -> ScheduledReminder:
        if reminder.status != ReminderStatus.scheduled:
            return reminder
        (moved,) = self._reminders.schedule(booking.start_time, [reminder.spec], now, booking_id=booking.id)
        return replace(moved, id=reminder.id)

    def _resolve_coordinates(self, location: str | None, coordinates: Coordinates | None) -> Coordinates | None:
        if coordinates is not None:
            return coordinates
        if not location or self._geocoder is None:
            return None
        try:
            return self._geocoder.geocode(location)
        except Exception as e:
            self._logger.warning("Geocoding failed", extra={"error": str(e)})
            return None

    def _estimate_travel(
        self,
        scope: str,
        member_id: str | None,
        destination: Coordinates | None,
    ) -> TravelEstimate | None:
        if not self._auto_travel or destination is None:
            return None
        origin = self._home_base.get_home_base(scope, member_id) if self._home_base else None
        return self._travel.estimate(origin, destination)


def _validated(start_time: datetime, end_time: datetime) -> TimeWindow:
    if not is_aware(start_time) or not is_aware(end_time):
        raise ValidationError("Booking start and end times must be timezone-aware")
    if end_time <= start_time:
        raise ValidationError("Booking end time must be after its start time")
    return TimeWindow(start=start_time, end=end_time)
