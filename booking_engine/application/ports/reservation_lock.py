from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager


class ReservationLockPort(ABC):
    @abstractmethod
    def hold(self, scope: str) -> AbstractContextManager[None]:
        """
        Mutual exclusion around check-and-reserve within one organization.

        Unassigned bookings conflict with every member's bookings, so all
        reservations in a scope serialize on the same key.
        """
        raise NotImplementedError
