from __future__ import annotations

import itertools
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from booking_engine.application.exceptions import EstimateUnavailable
from booking_engine.application.ports.geocoder import GeocoderPort
from booking_engine.application.ports.routing import RoutingPort
from booking_engine.application.use_cases.availability import AvailabilityChecker
from booking_engine.application.use_cases.booking_series import BookingSeriesCoordinator
from booking_engine.application.use_cases.lifecycle import BookingLifecycle
from booking_engine.application.use_cases.recurrence import RecurrenceExpander
from booking_engine.application.use_cases.reminders import ReminderScheduler
from booking_engine.application.use_cases.travel import TravelEstimator
from booking_engine.domain.entities.availability import BookingPolicy, BusinessHours
from booking_engine.domain.entities.booking import Booking
from booking_engine.domain.entities.travel import Coordinates, RouteInfo, TravelFeeConfig
from booking_engine.infrastructure.home_base.memory_home_base import MemoryHomeBaseDirectory
from booking_engine.infrastructure.locks.memory_locks import MemoryReservationLocks
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore

TZ = ZoneInfo("America/New_York")
NOW = datetime(2025, 1, 1, 9, 0, tzinfo=TZ)
SCOPE = "org_1"

STUDIO = Coordinates(latitude=37.7749, longitude=-122.4194)
OAKLAND = Coordinates(latitude=37.8044, longitude=-122.2712)


def at(year: int, month: int, day: int, hour: int = 10, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


class FakeRouting(RoutingPort):
    def __init__(self, miles: float = 20.0, minutes: int = 30, fail: bool = False) -> None:
        self.miles = miles
        self.minutes = minutes
        self.fail = fail
        self.calls: list[tuple[Coordinates, Coordinates]] = []

    def estimate(self, origin: Coordinates, destination: Coordinates) -> RouteInfo:
        self.calls.append((origin, destination))
        if self.fail:
            raise EstimateUnavailable("routing provider down")
        return RouteInfo(distance_miles=self.miles, travel_time_minutes=self.minutes)


class FakeGeocoder(GeocoderPort):
    def __init__(self, known: dict[str, Coordinates] | None = None, fail: bool = False) -> None:
        self.known = known or {}
        self.fail = fail

    def geocode(self, address: str) -> Coordinates | None:
        if self.fail:
            raise RuntimeError("geocoder offline")
        return self.known.get(address)


class RecordingStore(MemoryBookingStore):
    def __init__(self) -> None:
        super().__init__()
        self.saved: list[Booking] = []

    def save(self, booking: Booking) -> Booking:
        self.saved.append(booking)
        return super().save(booking)


class RecordingLocks(MemoryReservationLocks):
    def __init__(self) -> None:
        super().__init__()
        self.holds: list[str] = []

    def hold(self, scope):
        self.holds.append(scope)
        return super().hold(scope)


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def routing() -> FakeRouting:
    return FakeRouting()


@pytest.fixture
def home_base() -> MemoryHomeBaseDirectory:
    return MemoryHomeBaseDirectory()


@pytest.fixture
def make_coordinator(store, routing, home_base):
    def _make(
        policy: BookingPolicy | None = None,
        business_hours: BusinessHours | None = None,
        fee_config: TravelFeeConfig | None = TravelFeeConfig(fee_per_mile_cents=65, free_threshold_miles=15),
        geocoder: GeocoderPort | None = None,
        locks=None,
        now: datetime = NOW,
        max_occurrences: int = 366,
        auto_travel: bool = True,
    ) -> BookingSeriesCoordinator:
        ids = itertools.count(1)
        return BookingSeriesCoordinator(
            store=store,
            availability=AvailabilityChecker(store=store, timezone=TZ, policy=policy, business_hours=business_hours),
            expander=RecurrenceExpander(max_occurrences=max_occurrences),
            travel=TravelEstimator(routing=routing, fee_config=fee_config),
            lifecycle=BookingLifecycle(),
            reminders=ReminderScheduler(),
            timezone=TZ,
            home_base=home_base,
            geocoder=geocoder,
            locks=locks,
            auto_travel=auto_travel,
            clock=lambda: now,
            id_factory=lambda: f"id-{next(ids)}",
        )

    return _make


@pytest.fixture
def coordinator(make_coordinator) -> BookingSeriesCoordinator:
    return make_coordinator()
