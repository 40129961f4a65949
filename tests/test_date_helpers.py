from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

import pytest

from booking_engine.application.utils.date_helpers import format_day, safe_timezone, sunday_based_weekday

from conftest import at


def test_known_timezone_is_returned():
    assert safe_timezone("Europe/Lisbon") == ZoneInfo("Europe/Lisbon")


@pytest.mark.parametrize("name", ["America/New_Yrok", "../etc/passwd"])
def test_unknown_timezone_falls_back_with_a_warning(name, caplog):
    with caplog.at_level(logging.WARNING, logger="booking_engine.application.utils.date_helpers"):
        tz = safe_timezone(name)

    assert tz == ZoneInfo("UTC")
    assert any(getattr(record, "timezone", None) == name for record in caplog.records)


def test_missing_timezone_uses_fallback_quietly(caplog):
    with caplog.at_level(logging.WARNING):
        assert safe_timezone(None, fallback="America/Chicago") == ZoneInfo("America/Chicago")

    assert caplog.records == []


def test_sunday_based_weekday_and_format_day():
    # 2025-01-05 is a Sunday
    assert sunday_based_weekday(at(2025, 1, 5)) == 0
    assert sunday_based_weekday(at(2025, 1, 11)) == 6
    assert format_day(at(2025, 3, 31)) == "Mar 31, 2025"
