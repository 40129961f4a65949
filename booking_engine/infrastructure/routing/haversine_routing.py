from __future__ import annotations

import math

from booking_engine.application.ports.routing import RoutingPort
from booking_engine.domain.entities.travel import Coordinates, RouteInfo

EARTH_RADIUS_MILES = 3958.8


def great_circle_miles(origin: Coordinates, destination: Coordinates) -> float:
    lat1, lat2 = math.radians(origin.latitude), math.radians(destination.latitude)
    d_lat = lat2 - lat1
    d_lng = math.radians(destination.longitude - origin.longitude)
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(a))


class HaversineRouting(RoutingPort):
    """Offline estimate: straight-line distance stretched by a road factor, driven at an average speed."""

    def __init__(self, average_speed_mph: float = 35.0, road_factor: float = 1.25) -> None:
        if average_speed_mph <= 0:
            raise ValueError("average_speed_mph must be positive")
        self._average_speed_mph = average_speed_mph
        self._road_factor = road_factor

    def estimate(self, origin: Coordinates, destination: Coordinates) -> RouteInfo:
        distance = round(great_circle_miles(origin, destination) * self._road_factor, 1)
        minutes = math.ceil(distance / self._average_speed_mph * 60)
        return RouteInfo(distance_miles=distance, travel_time_minutes=minutes)
