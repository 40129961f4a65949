from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.travel import Coordinates


class GeocoderPort(ABC):
    @abstractmethod
    def geocode(self, address: str) -> Coordinates | None:
        """Resolve a free-text address. Returns None when nothing matched."""
        raise NotImplementedError
