from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from booking_engine.domain.entities.reminder import ReminderSpec, ReminderStatus, ScheduledReminder


class ReminderScheduler:
    """
    Compute reminder fire times from a session start.

    Reminders whose fire time has already passed are kept and flagged
    fire_immediately. Identical specs are not deduplicated.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def schedule(
        self,
        start_time: datetime,
        specs: Iterable[ReminderSpec],
        now: datetime,
        booking_id: str | None = None,
    ) -> list[ScheduledReminder]:
        reminders = []
        for spec in specs:
            fire_at = start_time - spec.lead_time
            reminders.append(
                ScheduledReminder(
                    fire_at=fire_at,
                    spec=spec,
                    fire_immediately=fire_at < now,
                    booking_id=booking_id,
                )
            )
        reminders.sort(key=lambda reminder: reminder.fire_at)
        return reminders

    def suppress_pending(self, reminders: Iterable[ScheduledReminder]) -> list[ScheduledReminder]:
        """Mark reminders that have not fired yet as suppressed; sent ones are left alone."""
        result = []
        suppressed = 0
        for reminder in reminders:
            if reminder.status == ReminderStatus.scheduled:
                reminder = replace(reminder, status=ReminderStatus.suppressed)
                suppressed += 1
            result.append(reminder)
        if suppressed:
            self._logger.info("Reminders suppressed", extra={"count": suppressed})
        return result
