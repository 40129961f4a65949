from __future__ import annotations

import json
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from booking_engine.application.exceptions import InfrastructureError
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.domain.entities.availability import AvailabilityBlock, BlockKind, BlockStatus
from booking_engine.domain.entities.booking import Booking, BookingStatus
from booking_engine.domain.entities.recurrence import RecurrencePattern, RecurrenceSpec
from booking_engine.domain.entities.reminder import (
    ReminderOffset,
    ReminderRecipient,
    ReminderSpec,
    ReminderStatus,
    ScheduledReminder,
)
from booking_engine.domain.entities.time_window import TimeWindow
from booking_engine.domain.entities.travel import Coordinates, TravelEstimate
from booking_engine.infrastructure.store.memory_store import block_may_overlap, booking_as_block, shares_calendar


class JsonBookingStore(BookingStorePort):
    """One JSON document per scope, written atomically through a temp file."""

    def __init__(self, data_dir: str = "./data/bookings") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict

    def _get_lock(self, scope: str) -> threading.Lock:
        with self._lock_lock:
            if scope not in self._locks:
                self._locks[scope] = threading.Lock()
            return self._locks[scope]

    def _get_file_path(self, scope: str) -> Path:
        return self._data_dir / f"{scope}.json"

    def _load_scope_data(self, scope: str) -> dict[str, Any]:
        file_path = self._get_file_path(scope)
        if not file_path.exists():
            return {"scope": scope, "bookings": {}, "blocks": [], "reminders": {}, "version": 1}

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise InfrastructureError(f"Could not read booking data for {scope}") from e

        data.setdefault("bookings", {})
        data.setdefault("blocks", [])
        data.setdefault("reminders", {})
        data.setdefault("version", 1)
        return data

    def _save_scope_data(self, scope: str, data: dict[str, Any]) -> None:
        file_path = self._get_file_path(scope)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise InfrastructureError(f"Could not write booking data for {scope}") from e

    def find_conflicting(
        self,
        scope: str,
        member_id: str | None,
        window: TimeWindow,
        exclude_booking_id: str | None = None,
    ) -> list[AvailabilityBlock]:
        with self._get_lock(scope):
            data = self._load_scope_data(scope)

        result = []
        for raw in data["bookings"].values():
            booking = _deserialize_booking(raw)
            if booking.id == exclude_booking_id or not booking.is_active:
                continue
            if not shares_calendar(booking, member_id):
                continue
            if window.overlaps(TimeWindow(booking.start_time, booking.end_time)):
                result.append(booking_as_block(booking))

        for raw in data["blocks"]:
            block = _deserialize_block(raw)
            if block_may_overlap(block, member_id, window):
                result.append(block)
        return result

    def save(self, booking: Booking) -> Booking:
        with self._get_lock(booking.scope):
            data = self._load_scope_data(booking.scope)
            data["bookings"][booking.id] = _serialize_booking(booking)
            self._save_scope_data(booking.scope, data)
        return booking

    def get(self, scope: str, booking_id: str) -> Booking | None:
        with self._get_lock(scope):
            data = self._load_scope_data(scope)
        raw = data["bookings"].get(booking_id)
        return _deserialize_booking(raw) if raw else None

    def list_series(self, scope: str, series_id: str) -> list[Booking]:
        with self._get_lock(scope):
            data = self._load_scope_data(scope)
        members = [
            _deserialize_booking(raw)
            for raw in data["bookings"].values()
            if raw.get("series_id") == series_id
        ]
        return sorted(members, key=lambda b: b.start_time)

    def add_block(self, scope: str, block: AvailabilityBlock) -> AvailabilityBlock:
        with self._get_lock(scope):
            data = self._load_scope_data(scope)
            data["blocks"].append(_serialize_block(block))
            self._save_scope_data(scope, data)
        return block

    def save_reminders(self, scope: str, booking_id: str, reminders: list[ScheduledReminder]) -> None:
        with self._get_lock(scope):
            data = self._load_scope_data(scope)
            data["reminders"][booking_id] = [_serialize_reminder(r) for r in reminders]
            self._save_scope_data(scope, data)

    def get_reminders(self, scope: str, booking_id: str) -> list[ScheduledReminder]:
        with self._get_lock(scope):
            data = self._load_scope_data(scope)
        return [_deserialize_reminder(raw) for raw in data["reminders"].get(booking_id, [])]

    def get_due_reminders(self, scope: str, now: datetime) -> list[ScheduledReminder]:
        with self._get_lock(scope):
            data = self._load_scope_data(scope)
        due = []
        for raw_reminders in data["reminders"].values():
            for raw in raw_reminders:
                reminder = _deserialize_reminder(raw)
                if reminder.status == ReminderStatus.scheduled and reminder.fire_at <= now:
                    due.append(reminder)
        return sorted(due, key=lambda r: r.fire_at)

    def mark_reminder_sent(
        self,
        scope: str,
        booking_id: str,
        reminder_id: str,
        sent_at: datetime,
    ) -> ScheduledReminder | None:
        with self._get_lock(scope):
            data = self._load_scope_data(scope)
            raw_reminders = data["reminders"].get(booking_id, [])
            for position, raw in enumerate(raw_reminders):
                reminder = _deserialize_reminder(raw)
                if reminder.id != reminder_id:
                    continue
                if reminder.status == ReminderStatus.scheduled:
                    reminder = replace(reminder, status=ReminderStatus.sent, sent_at=sent_at)
                    raw_reminders[position] = _serialize_reminder(reminder)
                    self._save_scope_data(scope, data)
                return reminder
        return None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _serialize_booking(booking: Booking) -> dict[str, Any]:
    return {
        "id": booking.id,
        "scope": booking.scope,
        "title": booking.title,
        "start_time": _iso(booking.start_time),
        "end_time": _iso(booking.end_time),
        "status": booking.status.value,
        "description": booking.description,
        "notes": booking.notes,
        "timezone": booking.timezone,
        "location": booking.location,
        "coordinates": (
            {"latitude": booking.coordinates.latitude, "longitude": booking.coordinates.longitude}
            if booking.coordinates
            else None
        ),
        "client_id": booking.client_id,
        "service_id": booking.service_id,
        "assigned_member_id": booking.assigned_member_id,
        "series_id": booking.series_id,
        "occurrence_index": booking.occurrence_index,
        "parent_booking_id": booking.parent_booking_id,
        "recurrence": _serialize_recurrence(booking.recurrence) if booking.recurrence else None,
        "travel": (
            {
                "distance_miles": booking.travel.distance_miles,
                "travel_time_minutes": booking.travel.travel_time_minutes,
                "fee_cents": booking.travel.fee_cents,
            }
            if booking.travel
            else None
        ),
        "created_at": _iso(booking.created_at),
        "confirmed_at": _iso(booking.confirmed_at),
        "completed_at": _iso(booking.completed_at),
        "cancelled_at": _iso(booking.cancelled_at),
        "cancellation_reason": booking.cancellation_reason,
    }


def _deserialize_booking(data: dict[str, Any]) -> Booking:
    coordinates = data.get("coordinates")
    travel = data.get("travel")
    recurrence = data.get("recurrence")
    return Booking(
        id=data["id"],
        scope=data["scope"],
        title=data["title"],
        start_time=_parse(data["start_time"]),
        end_time=_parse(data["end_time"]),
        status=BookingStatus(data.get("status", "pending")),
        description=data.get("description"),
        notes=data.get("notes"),
        timezone=data.get("timezone"),
        location=data.get("location"),
        coordinates=Coordinates(**coordinates) if coordinates else None,
        client_id=data.get("client_id"),
        service_id=data.get("service_id"),
        assigned_member_id=data.get("assigned_member_id"),
        series_id=data.get("series_id"),
        occurrence_index=data.get("occurrence_index", 0),
        parent_booking_id=data.get("parent_booking_id"),
        recurrence=_deserialize_recurrence(recurrence) if recurrence else None,
        travel=TravelEstimate(**travel) if travel else None,
        created_at=_parse(data.get("created_at")),
        confirmed_at=_parse(data.get("confirmed_at")),
        completed_at=_parse(data.get("completed_at")),
        cancelled_at=_parse(data.get("cancelled_at")),
        cancellation_reason=data.get("cancellation_reason"),
    )


def _serialize_recurrence(spec: RecurrenceSpec) -> dict[str, Any]:
    return {
        "pattern": spec.pattern.value,
        "interval": spec.interval,
        "days_of_week": sorted(spec.days_of_week),
        "after_count": spec.after_count,
        "until_date": _iso(spec.until_date),
    }


def _deserialize_recurrence(data: dict[str, Any]) -> RecurrenceSpec:
    return RecurrenceSpec(
        pattern=RecurrencePattern(data["pattern"]),
        interval=data.get("interval", 1),
        days_of_week=frozenset(data.get("days_of_week", [])),
        after_count=data.get("after_count"),
        until_date=_parse(data.get("until_date")),
    )


def _serialize_block(block: AvailabilityBlock) -> dict[str, Any]:
    return {
        "id": block.id,
        "kind": block.kind.value,
        "start": _iso(block.start),
        "end": _iso(block.end),
        "title": block.title,
        "member_id": block.member_id,
        "status": block.status.value,
        "recurrence_rule": block.recurrence_rule,
        "recurrence_end": _iso(block.recurrence_end),
    }


def _deserialize_block(data: dict[str, Any]) -> AvailabilityBlock:
    return AvailabilityBlock(
        id=data["id"],
        kind=BlockKind(data["kind"]),
        start=_parse(data["start"]),
        end=_parse(data["end"]),
        title=data.get("title"),
        member_id=data.get("member_id"),
        status=BlockStatus(data.get("status", "approved")),
        recurrence_rule=data.get("recurrence_rule"),
        recurrence_end=_parse(data.get("recurrence_end")),
    )


def _serialize_reminder(reminder: ScheduledReminder) -> dict[str, Any]:
    return {
        "fire_at": _iso(reminder.fire_at),
        "offset": reminder.spec.offset.value,
        "channel": reminder.spec.channel,
        "recipient": reminder.spec.recipient.value,
        "minutes_before": reminder.spec.minutes_before,
        "fire_immediately": reminder.fire_immediately,
        "booking_id": reminder.booking_id,
        "status": reminder.status.value,
        "id": reminder.id,
        "sent_at": _iso(reminder.sent_at),
    }


def _deserialize_reminder(data: dict[str, Any]) -> ScheduledReminder:
    return ScheduledReminder(
        fire_at=_parse(data["fire_at"]),
        spec=ReminderSpec(
            offset=ReminderOffset(data["offset"]),
            channel=data.get("channel", "email"),
            recipient=ReminderRecipient(data.get("recipient", "client")),
            minutes_before=data.get("minutes_before"),
        ),
        fire_immediately=data.get("fire_immediately", False),
        booking_id=data.get("booking_id"),
        status=ReminderStatus(data.get("status", "scheduled")),
        id=data.get("id"),
        sent_at=_parse(data.get("sent_at")),
    )
