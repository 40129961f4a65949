from __future__ import annotations

import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from dateutil.rrule import rrulestr

from booking_engine.application.exceptions import ValidationError
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.utils.date_helpers import sunday_based_weekday
from booking_engine.domain.entities.availability import (
    AvailabilityBlock,
    AvailabilityResult,
    BlockKind,
    BlockStatus,
    BookingPolicy,
    BusinessHours,
)
from booking_engine.domain.entities.time_window import TimeWindow

OUTSIDE_BUSINESS_HOURS = "outside_business_hours"

AVAILABLE = AvailabilityResult(ok=True)


class AvailabilityChecker:
    """
    Read-only conflict check for a proposed booking window.

    Order of checks: active bookings, then approved time-off/holiday/personal
    blocks, then business hours. The first conflict found is returned.
    """

    def __init__(
        self,
        store: BookingStorePort,
        timezone: ZoneInfo,
        policy: BookingPolicy | None = None,
        business_hours: BusinessHours | None = None,
    ) -> None:
        self._store = store
        self._timezone = timezone
        self._policy = policy or BookingPolicy()
        self._business_hours = business_hours
        self._logger = logging.getLogger(__name__)

    def check(
        self,
        scope: str,
        window: TimeWindow,
        member_id: str | None = None,
        exclude_booking_id: str | None = None,
    ) -> AvailabilityResult:
        guarded = window.widened(
            before=timedelta(minutes=self._policy.buffer_before_minutes),
            after=timedelta(minutes=self._policy.buffer_after_minutes),
        )
        candidates = self._store.find_conflicting(scope, member_id, guarded, exclude_booking_id)

        for block in candidates:
            if block.kind != BlockKind.booking:
                continue
            if block.cancelled or block.id == exclude_booking_id:
                continue
            if guarded.overlaps(TimeWindow(block.start, block.end)):
                return AvailabilityResult(ok=False, reason="overlaps_booking", conflicting=block)

        for block in candidates:
            if block.kind == BlockKind.booking or block.status != BlockStatus.approved:
                continue
            if self._block_overlaps(block, guarded):
                return AvailabilityResult(ok=False, reason=f"overlaps_{block.kind.value}", conflicting=block)

        if self._business_hours is not None and not self._within_business_hours(window):
            return AvailabilityResult(ok=False, reason=OUTSIDE_BUSINESS_HOURS)

        return AVAILABLE

    def validate_advance_notice(self, window: TimeWindow, now: datetime) -> None:
        """Raise ValidationError when the window violates min/max advance booking policy."""
        min_hours = self._policy.min_advance_hours
        if min_hours and window.start < now + timedelta(hours=min_hours):
            raise ValidationError(f"Bookings must be made at least {min_hours} hours in advance")

        max_days = self._policy.max_advance_days
        if max_days is not None and window.start > now + timedelta(days=max_days):
            raise ValidationError(f"Bookings cannot be made more than {max_days} days in advance")

    def _block_overlaps(self, block: AvailabilityBlock, window: TimeWindow) -> bool:
        if not block.recurrence_rule:
            return window.overlaps(TimeWindow(block.start, block.end))

        duration = block.end - block.start
        try:
            rule = rrulestr(block.recurrence_rule, dtstart=block.start)
            occurrences = rule.between(window.start - duration, window.end, inc=True)
        except (ValueError, TypeError) as e:
            self._logger.error(
                "Unreadable recurrence rule on availability block",
                extra={"block_id": block.id, "error": str(e)},
            )
            return False

        for occurrence in occurrences:
            if block.recurrence_end is not None and occurrence > block.recurrence_end:
                break
            if window.overlaps(TimeWindow(occurrence, occurrence + duration)):
                return True
        return False

    def _within_business_hours(self, window: TimeWindow) -> bool:
        local_start = window.start.astimezone(self._timezone)
        local_end = window.end.astimezone(self._timezone)

        hours = self._business_hours.hours.get(sunday_based_weekday(local_start))
        if hours is None:
            return False

        opens, closes = hours
        if local_end.date() != local_start.date():
            return False
        return opens <= local_start.time() and local_end.time() <= closes
