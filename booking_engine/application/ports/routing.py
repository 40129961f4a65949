from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.travel import Coordinates, RouteInfo


class RoutingPort(ABC):
    @abstractmethod
    def estimate(self, origin: Coordinates, destination: Coordinates) -> RouteInfo:
        """Driving distance and duration. Raises EstimateUnavailable on failure."""
        raise NotImplementedError
