#!/usr/bin/env python3
"""
Print the occurrences a recurrence would produce, without touching any store.

Usage:
  python3 scripts/preview_series.py --start 2025-01-31T10:00 --pattern monthly --count 4
  python3 scripts/preview_series.py --start 2025-03-04T09:00 --pattern custom --days 1,3,5 --until 2025-03-31
"""
from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from booking_engine.application.exceptions import ValidationError
from booking_engine.application.use_cases.recurrence import RecurrenceExpander, describe_recurrence
from booking_engine.domain.entities.recurrence import RecurrencePattern, RecurrenceSpec


def main() -> int:
    parser = argparse.ArgumentParser(description="Preview a recurring series")
    parser.add_argument("--start", required=True, help="local ISO start, e.g. 2025-01-31T10:00")
    parser.add_argument("--timezone", default="America/New_York")
    parser.add_argument("--minutes", type=int, default=60)
    parser.add_argument("--pattern", choices=[p.value for p in RecurrencePattern], default="weekly")
    parser.add_argument("--interval", type=int, default=1)
    parser.add_argument("--days", default="", help="comma separated weekdays, 0=Sunday")
    parser.add_argument("--count", type=int, default=None)
    parser.add_argument("--until", default=None, help="local ISO end date (inclusive)")
    args = parser.parse_args()

    tz = ZoneInfo(args.timezone)
    start = datetime.fromisoformat(args.start).replace(tzinfo=tz)
    until = None
    if args.until:
        until = datetime.fromisoformat(args.until).replace(tzinfo=tz)
        if until.time() == datetime.min.time():
            until = until.replace(hour=23, minute=59, second=59)

    spec = RecurrenceSpec(
        pattern=RecurrencePattern(args.pattern),
        interval=args.interval,
        days_of_week=frozenset(int(d) for d in args.days.split(",") if d.strip()),
        after_count=args.count,
        until_date=until,
    )

    try:
        occurrences = RecurrenceExpander().expand(spec, start, timedelta(minutes=args.minutes))
    except ValidationError as e:
        print(f"Invalid recurrence: {e}")
        return 1

    print(describe_recurrence(spec))
    print("-" * 60)
    for index, window in enumerate(occurrences):
        print(f"{index:>3}  {window.start:%a %Y-%m-%d %H:%M} -> {window.end:%H:%M}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
