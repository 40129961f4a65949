from __future__ import annotations

import logging

from booking_engine.application.ports.geocoder import GeocoderPort
from booking_engine.domain.entities.travel import Coordinates


class StaticGeocoder(GeocoderPort):
    """Lookup table geocoder for local development; unknown addresses resolve to None."""

    def __init__(self, known: dict[str, Coordinates] | None = None) -> None:
        self._known = {self._normalize(address): coords for address, coords in (known or {}).items()}
        self._logger = logging.getLogger(__name__)

    def geocode(self, address: str) -> Coordinates | None:
        coords = self._known.get(self._normalize(address))
        if coords is None:
            self._logger.info("Static geocoder has no match", extra={"address": address})
        return coords

    def add(self, address: str, coordinates: Coordinates) -> None:
        self._known[self._normalize(address)] = coordinates

    @staticmethod
    def _normalize(address: str) -> str:
        return " ".join(address.lower().split())
