"""
Domain entities and lifecycle rules.

Patterns used
-------------
- **State Pattern** over ``RideStatus``: ``ensure_transition`` is the single
  gate every status change passes through
  (requested -> accepted -> in_progress -> completed | cancelled).
- ``Caller`` is the identity resolved once per request and handed to every
  lifecycle operation; operations never look at credentials themselves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .enums import RIDE_TRANSITIONS, Role, RideStatus
from .errors import InvalidStateTransition, ValidationError

MIN_RATING = 1.0
MAX_RATING = 5.0


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Caller:
    id: int
    role: Role
    name: str = ""
    phone: str = ""

    @property
    def is_passenger(self) -> bool:
        return self.role == Role.PASSENGER


# ── Rules ─────────────────────────────────────────────────────────────


def ensure_transition(current: RideStatus, new_status: RideStatus) -> None:
    """Raise ``InvalidStateTransition`` unless *current* -> *new_status* is legal."""
    allowed = RIDE_TRANSITIONS.get(RideStatus(current), set())
    if RideStatus(new_status) not in allowed:
        raise InvalidStateTransition(current, new_status)


def is_party(ride, caller: Caller) -> bool:
    """True when *caller* is the ride's passenger (or its assigned driver)."""
    if caller.is_passenger:
        return ride.passenger_id == caller.id
    return ride.driver_id is not None and ride.driver_id == caller.id


def _positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def validate_booking(
    pickup_location: str,
    drop_location: str,
    distance_km: float,
    fare: float,
    discounted_fare: Optional[float] = None,
) -> None:
    if not (pickup_location or "").strip() or not (drop_location or "").strip():
        raise ValidationError()
    if not distance_km or not fare:
        raise ValidationError()
    if not _positive(distance_km) or not _positive(fare):
        raise ValidationError("Distance and fare must be positive numbers")
    if discounted_fare is not None:
        if not _positive(discounted_fare) or discounted_fare > fare:
            raise ValidationError("Discounted fare must be positive and not exceed the fare")


def validate_rating(rating: float) -> None:
    if rating is None or not math.isfinite(rating) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_RATING:g} and {MAX_RATING:g}"
        )
