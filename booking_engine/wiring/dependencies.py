from functools import lru_cache
import logging

from booking_engine.core.config import settings
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.application.ports.geocoder import GeocoderPort
from booking_engine.application.ports.routing import RoutingPort
from booking_engine.application.use_cases.availability import AvailabilityChecker
from booking_engine.application.use_cases.booking_series import BookingSeriesCoordinator
from booking_engine.application.use_cases.lifecycle import BookingLifecycle
from booking_engine.application.use_cases.recurrence import RecurrenceExpander
from booking_engine.application.use_cases.reminders import ReminderScheduler
from booking_engine.application.use_cases.travel import TravelEstimator
from booking_engine.application.utils.date_helpers import safe_timezone
from booking_engine.domain.entities.availability import BookingPolicy
from booking_engine.domain.entities.travel import Coordinates, TravelFeeConfig
from booking_engine.infrastructure.geocoding.google_geocoder import GoogleGeocoder
from booking_engine.infrastructure.geocoding.static_geocoder import StaticGeocoder
from booking_engine.infrastructure.home_base.memory_home_base import MemoryHomeBaseDirectory
from booking_engine.infrastructure.locks.memory_locks import MemoryReservationLocks
from booking_engine.infrastructure.routing.google_distance_matrix import GoogleDistanceMatrixRouting
from booking_engine.infrastructure.routing.haversine_routing import HaversineRouting
from booking_engine.infrastructure.store.json_store import JsonBookingStore
from booking_engine.infrastructure.store.memory_store import MemoryBookingStore


_booking_store: BookingStorePort | None = None

logger = logging.getLogger(__name__)


def get_booking_store() -> BookingStorePort:
    global _booking_store
    if _booking_store is None:
        if settings.STORE_PROVIDER.lower() == "json":
            _booking_store = JsonBookingStore(data_dir=settings.STORE_DATA_DIR)
        else:
            _booking_store = MemoryBookingStore()
    return _booking_store


@lru_cache
def get_routing() -> RoutingPort:
    if settings.ROUTING_PROVIDER.lower() == "google" and settings.GOOGLE_MAPS_API_KEY:
        return GoogleDistanceMatrixRouting()
    if settings.ROUTING_PROVIDER.lower() == "google":
        logger.warning("ROUTING_PROVIDER=google without GOOGLE_MAPS_API_KEY -> using haversine routing")
    return HaversineRouting(
        average_speed_mph=settings.ROUTING_AVERAGE_SPEED_MPH,
        road_factor=settings.ROUTING_ROAD_FACTOR,
    )


@lru_cache
def get_geocoder() -> GeocoderPort:
    if not settings.GOOGLE_MAPS_API_KEY:
        logger.info("GOOGLE_MAPS_API_KEY not set -> using static geocoder")
        return StaticGeocoder(
            {
                address: Coordinates(latitude=lat, longitude=lng)
                for address, (lat, lng) in settings.STATIC_GEOCODER_ADDRESSES.items()
            }
        )
    return GoogleGeocoder()


@lru_cache
def get_home_base_directory() -> MemoryHomeBaseDirectory:
    default = None
    if settings.HOME_BASE_LATITUDE is not None and settings.HOME_BASE_LONGITUDE is not None:
        default = Coordinates(latitude=settings.HOME_BASE_LATITUDE, longitude=settings.HOME_BASE_LONGITUDE)
    return MemoryHomeBaseDirectory(default_home_base=default)


@lru_cache
def get_reservation_locks() -> MemoryReservationLocks:
    return MemoryReservationLocks()


def get_travel_fee_config() -> TravelFeeConfig:
    return TravelFeeConfig(
        fee_per_mile_cents=settings.TRAVEL_FEE_PER_MILE_CENTS,
        free_threshold_miles=settings.TRAVEL_FREE_THRESHOLD_MILES,
    )


def get_booking_policy() -> BookingPolicy:
    return BookingPolicy(
        buffer_before_minutes=settings.BOOKING_BUFFER_BEFORE_MINUTES,
        buffer_after_minutes=settings.BOOKING_BUFFER_AFTER_MINUTES,
        min_advance_hours=settings.BOOKING_MIN_ADVANCE_HOURS,
        max_advance_days=settings.BOOKING_MAX_ADVANCE_DAYS,
    )


def get_coordinator() -> BookingSeriesCoordinator:
    store = get_booking_store()
    tz = safe_timezone(settings.BUSINESS_TIMEZONE)
    return BookingSeriesCoordinator(
        store=store,
        availability=AvailabilityChecker(store=store, timezone=tz, policy=get_booking_policy()),
        expander=RecurrenceExpander(max_occurrences=settings.RECURRENCE_MAX_OCCURRENCES),
        travel=TravelEstimator(routing=get_routing(), fee_config=get_travel_fee_config()),
        lifecycle=BookingLifecycle(),
        reminders=ReminderScheduler(),
        timezone=tz,
        home_base=get_home_base_directory(),
        geocoder=get_geocoder(),
        locks=get_reservation_locks(),
        auto_travel=settings.TRAVEL_AUTO_CALCULATE,
    )
