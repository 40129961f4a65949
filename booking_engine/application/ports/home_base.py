from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.travel import Coordinates


class HomeBasePort(ABC):
    @abstractmethod
    def get_home_base(self, scope: str, member_id: str | None = None) -> Coordinates | None:
        """Member override first, then the organization home base, else None."""
        raise NotImplementedError
