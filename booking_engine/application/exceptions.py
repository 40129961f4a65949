from __future__ import annotations

from typing import Any


class BookingEngineError(RuntimeError):
    """Base class for errors surfaced by the booking engine."""
    pass


class ValidationError(BookingEngineError, ValueError):
    """Raised for malformed input before anything is written."""
    pass


class BookingNotFound(BookingEngineError, LookupError):
    pass


class ReminderNotFound(BookingEngineError, LookupError):
    pass


class ConflictError(BookingEngineError):
    """Raised when a single booking's window collides with existing availability."""

    def __init__(self, reason: str, conflicting: Any = None) -> None:
        super().__init__(f"Booking window conflicts: {reason}")
        self.reason = reason
        self.conflicting = conflicting


class InvalidTransition(BookingEngineError):
    def __init__(self, current: Any, requested: Any) -> None:
        current_value = getattr(current, "value", current)
        requested_value = getattr(requested, "value", requested)
        super().__init__(f"Cannot move booking from {current_value} to {requested_value}")
        self.current = current
        self.requested = requested


class InfrastructureError(BookingEngineError):
    """Raised when a store, routing or geocoding call fails (timeouts, network errors, bad payloads)."""
    pass


class EstimateUnavailable(InfrastructureError):
    """Raised by routing adapters; never leaves the travel estimator."""
    pass
