from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class RecurrencePattern(str, Enum):
    daily = "daily"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    custom = "custom"


@dataclass(frozen=True)
class RecurrenceSpec:
    pattern: RecurrencePattern
    interval: int = 1  # ignored for biweekly and custom
    days_of_week: frozenset[int] = field(default_factory=frozenset)  # 0=Sunday .. 6=Saturday
    after_count: int | None = None
    until_date: datetime | None = None
