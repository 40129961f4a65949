from __future__ import annotations

from dataclasses import dataclass, field

from booking_engine.domain.entities.availability import AvailabilityBlock
from booking_engine.domain.entities.booking import Booking
from booking_engine.domain.entities.time_window import TimeWindow


@dataclass(frozen=True)
class SkippedOccurrence:
    occurrence_index: int
    window: TimeWindow
    reason: str
    conflicting: AvailabilityBlock | None = None


@dataclass
class SeriesResult:
    series_id: str
    created: list[Booking] = field(default_factory=list)
    skipped: list[SkippedOccurrence] = field(default_factory=list)
