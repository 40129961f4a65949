from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from booking_engine.application.ports.routing import RoutingPort
from booking_engine.application.utils.preview import diff_changes
from booking_engine.domain.entities.travel import Coordinates, TravelEstimate, TravelFeeConfig

SAMPLE_DISTANCES_MILES = (5, 15, 25, 50)


def compute_travel_fee(distance_miles: float, config: TravelFeeConfig | None) -> int:
    """Fee in cents for the miles beyond the free threshold, rounded half-up to the cent."""
    if config is None:
        return 0
    billable = max(Decimal("0"), Decimal(str(distance_miles)) - Decimal(str(config.free_threshold_miles)))
    fee = billable * Decimal(config.fee_per_mile_cents)
    return int(fee.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class TravelEstimator:
    def __init__(
        self,
        routing: RoutingPort | None,
        fee_config: TravelFeeConfig | None = None,
    ) -> None:
        self._routing = routing
        self._fee_config = fee_config
        self._logger = logging.getLogger(__name__)

    def estimate(
        self,
        origin: Coordinates | None,
        destination: Coordinates | None,
        fee_config: TravelFeeConfig | None = None,
    ) -> TravelEstimate | None:
        """
        Distance, duration and fee from the home base to a destination.

        Returns None when there is no home base, no destination, no routing
        provider, or the provider fails. Never raises for those cases.
        """
        if origin is None or destination is None or self._routing is None:
            return None

        try:
            route = self._routing.estimate(origin, destination)
        except Exception as e:
            self._logger.warning("Travel estimate unavailable", extra={"error": str(e)})
            return None

        config = fee_config or self._fee_config
        return TravelEstimate(
            distance_miles=route.distance_miles,
            travel_time_minutes=route.travel_time_minutes,
            fee_cents=compute_travel_fee(route.distance_miles, config),
        )


@dataclass(frozen=True)
class TravelSettingsPreview:
    changes: dict[str, tuple[Any, Any]]
    current_fees: dict[float, int]
    candidate_fees: dict[float, int]

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)


def preview_travel_settings(
    saved: TravelFeeConfig,
    candidate: TravelFeeConfig,
    sample_distances: Iterable[float] = SAMPLE_DISTANCES_MILES,
) -> TravelSettingsPreview:
    """Show what a candidate fee configuration would charge before it is saved."""
    distances = list(sample_distances)
    return TravelSettingsPreview(
        changes=diff_changes(saved, candidate),
        current_fees={miles: compute_travel_fee(miles, saved) for miles in distances},
        candidate_fees={miles: compute_travel_fee(miles, candidate) for miles in distances},
    )
