from __future__ import annotations

from booking_engine.application.ports.home_base import HomeBasePort
from booking_engine.domain.entities.travel import Coordinates


class MemoryHomeBaseDirectory(HomeBasePort):
    def __init__(self, default_home_base: Coordinates | None = None) -> None:
        self._default = default_home_base
        self._organizations: dict[str, Coordinates] = {}
        self._members: dict[tuple[str, str], Coordinates] = {}

    def set_organization_home_base(self, scope: str, coordinates: Coordinates) -> None:
        self._organizations[scope] = coordinates

    def set_member_home_base(self, scope: str, member_id: str, coordinates: Coordinates) -> None:
        self._members[(scope, member_id)] = coordinates

    def get_home_base(self, scope: str, member_id: str | None = None) -> Coordinates | None:
        if member_id is not None:
            override = self._members.get((scope, member_id))
            if override is not None:
                return override
        return self._organizations.get(scope, self._default)
