"""
Driver earnings statistics.

Earnings per ride are the discounted fare when one was applied, otherwise the
listed fare.  Totals are rounded half-up to 2 decimals, ratings to 1.

"Today" is the caller's local calendar day; ``day_bounds`` turns an IANA zone
name into the ``[start, end)`` UTC interval used to query the store.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ValidationError


@dataclass(frozen=True)
class RideFigures:
    rides: int
    earnings: float
    average_rating: float


@dataclass(frozen=True)
class DriverStats:
    total_rides: int
    total_earnings: float
    average_rating: float
    today_rides: int
    today_earnings: float
    today_average_rating: float

    def as_dict(self) -> dict:
        return asdict(self)


def ride_earning(ride) -> float:
    if ride.discounted_fare is not None:
        return ride.discounted_fare
    return ride.fare


def summarize(rides: Iterable) -> RideFigures:
    rides = list(rides)
    earnings = sum(ride_earning(r) for r in rides)
    ratings = [r.rating for r in rides if r.rating is not None]
    average = sum(ratings) / len(ratings) if ratings else 0.0
    return RideFigures(
        rides=len(rides),
        earnings=_round(earnings, 2),
        average_rating=_round(average, 1),
    )


def driver_stats(completed: Iterable, completed_today: Iterable) -> DriverStats:
    overall = summarize(completed)
    today = summarize(completed_today)
    return DriverStats(
        total_rides=overall.rides,
        total_earnings=overall.earnings,
        average_rating=overall.average_rating,
        today_rides=today.rides,
        today_earnings=today.earnings,
        today_average_rating=today.average_rating,
    )


def day_bounds(
    tz_name: str, now: Optional[datetime] = None
) -> tuple[datetime, datetime]:
    """Return the UTC ``[start, end)`` of the current day in *tz_name*."""
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {tz_name}") from None

    local_now = (now or datetime.now(timezone.utc)).astimezone(tz)
    start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    # Add a calendar day in local time so DST-length days stay correct
    end = (start.replace(tzinfo=None) + timedelta(days=1)).replace(tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def _round(value: float, places: int) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
