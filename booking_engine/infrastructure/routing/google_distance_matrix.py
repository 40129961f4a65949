from __future__ import annotations

import logging
import math

import httpx

from booking_engine.application.exceptions import EstimateUnavailable
from booking_engine.application.ports.routing import RoutingPort
from booking_engine.core.config import settings
from booking_engine.domain.entities.travel import Coordinates, RouteInfo

METERS_PER_MILE = 1609.344


class GoogleDistanceMatrixRouting(RoutingPort):
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key or settings.GOOGLE_MAPS_API_KEY
        self._base_url = base_url or settings.GOOGLE_DISTANCE_MATRIX_URL
        self._client = client or httpx.Client(timeout=timeout or settings.ROUTING_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

        if not self._api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY is required for Google distance matrix routing")

    def estimate(self, origin: Coordinates, destination: Coordinates) -> RouteInfo:
        params = {
            "origins": f"{origin.latitude},{origin.longitude}",
            "destinations": f"{destination.latitude},{destination.longitude}",
            "units": "imperial",
            "key": self._api_key,
        }
        try:
            response = self._client.get(self._base_url, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Error calling distance matrix", extra={"error": str(e)})
            raise EstimateUnavailable("Distance matrix request failed") from e

        if data.get("status") != "OK":
            raise EstimateUnavailable(f"Distance matrix returned {data.get('status')}")

        try:
            element = data["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise EstimateUnavailable("Distance matrix response had no route") from e

        if element.get("status") != "OK":
            raise EstimateUnavailable(f"No route between locations: {element.get('status')}")

        distance_miles = round(element["distance"]["value"] / METERS_PER_MILE, 1)
        travel_minutes = math.ceil(element["duration"]["value"] / 60)
        return RouteInfo(distance_miles=distance_miles, travel_time_minutes=travel_minutes)
