from __future__ import annotations

import logging
from datetime import datetime, timedelta
from itertools import count, islice, takewhile
from typing import Iterator

from dateutil.relativedelta import relativedelta

from booking_engine.application.exceptions import ValidationError
from booking_engine.application.utils.date_helpers import (
    WEEKDAY_NAMES,
    format_day,
    is_aware,
    sunday_based_weekday,
)
from booking_engine.domain.entities.recurrence import RecurrencePattern, RecurrenceSpec
from booking_engine.domain.entities.time_window import TimeWindow

DEFAULT_MAX_OCCURRENCES = 366


class OccurrenceSequence:
    """
    Lazy, restartable sequence of occurrence windows.

    Every call to iter() starts again from the first occurrence. The length is
    known up front because the expander walks the sequence once to validate it.
    """

    def __init__(
        self,
        spec: RecurrenceSpec,
        first_start: datetime,
        duration: timedelta,
        length: int,
    ) -> None:
        self._spec = spec
        self._first_start = first_start
        self._duration = duration
        self._length = length

    def __iter__(self) -> Iterator[TimeWindow]:
        for start in _bounded_starts(self._spec, self._first_start):
            yield TimeWindow(start=start, end=start + self._duration)

    def __len__(self) -> int:
        return self._length


class RecurrenceExpander:
    def __init__(self, max_occurrences: int = DEFAULT_MAX_OCCURRENCES) -> None:
        self._max_occurrences = max_occurrences
        self._logger = logging.getLogger(__name__)

    def expand(self, spec: RecurrenceSpec, first_start: datetime, duration: timedelta) -> OccurrenceSequence:
        self.validate(spec, first_start)
        if duration <= timedelta(0):
            raise ValidationError("Session end time must be after its start time")

        length = 0
        for _ in islice(_bounded_starts(spec, first_start), self._max_occurrences + 1):
            length += 1

        if length == 0:
            raise ValidationError("Recurrence produces no occurrences before the end date")
        if length > self._max_occurrences:
            raise ValidationError(
                f"Recurrence exceeds the maximum of {self._max_occurrences} occurrences"
            )

        self._logger.debug(
            "Recurrence expanded",
            extra={"pattern": spec.pattern.value, "occurrences": length},
        )
        return OccurrenceSequence(spec, first_start, duration, length)

    def validate(self, spec: RecurrenceSpec, first_start: datetime) -> None:
        if not is_aware(first_start):
            raise ValidationError("Series start time must be timezone-aware")

        if spec.pattern in (RecurrencePattern.daily, RecurrencePattern.weekly, RecurrencePattern.monthly):
            if spec.interval < 1:
                raise ValidationError("Recurrence interval must be a positive integer")

        if spec.pattern == RecurrencePattern.custom:
            if not spec.days_of_week:
                raise ValidationError("Custom recurrence needs at least one day of the week")
            if any(day < 0 or day > 6 for day in spec.days_of_week):
                raise ValidationError("Days of the week must be between 0 (Sunday) and 6 (Saturday)")

        has_count = spec.after_count is not None
        has_until = spec.until_date is not None
        if has_count == has_until:
            raise ValidationError("Recurrence needs exactly one end condition: a count or an end date")

        if has_count:
            if spec.after_count < 2:
                raise ValidationError("A recurring series needs at least 2 occurrences")
            if spec.after_count > self._max_occurrences:
                raise ValidationError(
                    f"Recurrence exceeds the maximum of {self._max_occurrences} occurrences"
                )
        else:
            if not is_aware(spec.until_date):
                raise ValidationError("Recurrence end date must be timezone-aware")
            if spec.until_date < first_start:
                raise ValidationError("Recurrence end date is before the first session")


def describe_recurrence(spec: RecurrenceSpec) -> str:
    """Human-readable summary, e.g. "Every 2 weeks, 6 times"."""
    interval = max(spec.interval, 1)
    if spec.pattern == RecurrencePattern.daily:
        base = "Daily" if interval == 1 else f"Every {interval} days"
    elif spec.pattern == RecurrencePattern.weekly:
        base = "Weekly" if interval == 1 else f"Every {interval} weeks"
    elif spec.pattern == RecurrencePattern.biweekly:
        base = "Every 2 weeks"
    elif spec.pattern == RecurrencePattern.monthly:
        base = "Monthly" if interval == 1 else f"Every {interval} months"
    else:
        days = ", ".join(WEEKDAY_NAMES[day] for day in sorted(spec.days_of_week))
        base = f"Every {days}"

    if spec.after_count is not None:
        return f"{base}, {spec.after_count} times"
    if spec.until_date is not None:
        return f"{base} until {format_day(spec.until_date)}"
    return base


def _bounded_starts(spec: RecurrenceSpec, first_start: datetime) -> Iterator[datetime]:
    starts = _candidate_starts(spec, first_start)
    if spec.after_count is not None:
        return islice(starts, spec.after_count)
    until = spec.until_date
    return takewhile(lambda start: start <= until, starts)


def _candidate_starts(spec: RecurrenceSpec, first_start: datetime) -> Iterator[datetime]:
    # Offsets are always taken from first_start so month-end clamping never drifts
    # (Jan 31 -> Feb 28 -> Mar 31, not Mar 28).
    if spec.pattern == RecurrencePattern.daily:
        step = timedelta(days=spec.interval)
        return (first_start + step * k for k in count())

    if spec.pattern == RecurrencePattern.weekly:
        step = timedelta(weeks=spec.interval)
        return (first_start + step * k for k in count())

    if spec.pattern == RecurrencePattern.biweekly:
        step = timedelta(weeks=2)
        return (first_start + step * k for k in count())

    if spec.pattern == RecurrencePattern.monthly:
        return (first_start + relativedelta(months=spec.interval * k) for k in count())

    return _custom_starts(spec.days_of_week, first_start)


def _custom_starts(days_of_week: frozenset[int], first_start: datetime) -> Iterator[datetime]:
    for k in count():
        candidate = first_start + timedelta(days=k)
        if sunday_based_weekday(candidate) in days_of_week:
            yield candidate
