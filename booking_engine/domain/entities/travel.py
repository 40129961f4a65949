from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class RouteInfo:
    """Distance and duration as reported by a routing provider."""

    distance_miles: float
    travel_time_minutes: int


@dataclass(frozen=True)
class TravelFeeConfig:
    fee_per_mile_cents: int = 0
    free_threshold_miles: float = 0.0


@dataclass(frozen=True)
class TravelEstimate:
    distance_miles: float
    travel_time_minutes: int
    fee_cents: int
