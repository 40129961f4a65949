#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

import httpx
from httpx import ConnectError


def build_payload(title: str, start: datetime, minutes: int, pattern: str, count: int, member: str | None) -> dict[str, Any]:
    return {
        "title": title,
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(minutes=minutes)).isoformat(),
        "timezone": str(start.tzinfo),
        "assigned_member_id": member,
        "reminders": [{"offset": "hours_24", "channel": "email", "recipient": "client"}],
        "recurrence": {"pattern": pattern, "after_count": count},
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a recurring booking series against a running server")
    parser.add_argument("--url", default="http://127.0.0.1:8001/v1/demo-org/series")
    parser.add_argument("--title", default="Weekly headshot session")
    parser.add_argument("--start", default=None, help="ISO start time; defaults to tomorrow 10:00")
    parser.add_argument("--timezone", default="America/New_York")
    parser.add_argument("--minutes", type=int, default=60)
    parser.add_argument("--pattern", default="weekly")
    parser.add_argument("--count", type=int, default=4)
    parser.add_argument("--member", default=None)
    args = parser.parse_args()

    tz = ZoneInfo(args.timezone)
    if args.start:
        start = datetime.fromisoformat(args.start).replace(tzinfo=tz)
    else:
        start = (datetime.now(tz) + timedelta(days=1)).replace(hour=10, minute=0, second=0, microsecond=0)

    payload = build_payload(args.title, start, args.minutes, args.pattern, args.count, args.member)

    try:
        resp = httpx.post(args.url, json=payload, timeout=10.0)
    except ConnectError:
        print("Connection refused. Is the FastAPI server running?")
        print("Try: uvicorn booking_engine.main:app --reload --port 8001")
        return

    print(resp.status_code)
    if resp.text:
        print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
