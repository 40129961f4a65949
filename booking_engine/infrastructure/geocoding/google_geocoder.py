from __future__ import annotations

import logging

import httpx

from booking_engine.application.exceptions import InfrastructureError
from booking_engine.application.ports.geocoder import GeocoderPort
from booking_engine.core.config import settings
from booking_engine.domain.entities.travel import Coordinates


class GoogleGeocoder(GeocoderPort):
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key or settings.GOOGLE_MAPS_API_KEY
        self._base_url = base_url or settings.GOOGLE_GEOCODE_URL
        self._client = client or httpx.Client(timeout=timeout or settings.ROUTING_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

        if not self._api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY is required for Google geocoding")

    def geocode(self, address: str) -> Coordinates | None:
        try:
            response = self._client.get(self._base_url, params={"address": address, "key": self._api_key})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Error geocoding address", extra={"error": str(e)})
            raise InfrastructureError("Geocoding request failed") from e

        status = data.get("status")
        if status == "ZERO_RESULTS":
            return None
        if status != "OK":
            raise InfrastructureError(f"Geocoding returned {status}")

        location = data["results"][0]["geometry"]["location"]
        return Coordinates(latitude=float(location["lat"]), longitude=float(location["lng"]))
