"""
Ride Lifecycle Manager
======================

One method per operation.  Each operation declares the roles allowed to run
it with ``@requires_role``; the declaration is checked once, before the body
runs, and is also exposed as ``<method>.required_roles`` so the HTTP layer
can reject a wrong role before it parses the request body.

Check order inside every operation
----------------------------------
1. role           -> ``PermissionDenied``
2. existence      -> ``RideNotFound``
3. ownership      -> ``PermissionDenied``
4. state          -> ``RideUnavailable`` / ``InvalidStateTransition`` / ...

Mutations are single conditional UPDATEs (see ``RideRepository``); when the
row no longer matches the state that was checked, the operation fails
instead of overwriting a concurrent change.
"""

from __future__ import annotations

import functools
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.config import settings
from ridehail.domain.earnings import DriverStats, day_bounds, driver_stats
from ridehail.domain.entities import (
    Caller,
    ensure_transition,
    is_party,
    validate_booking,
    validate_rating,
)
from ridehail.domain.enums import UPDATABLE_STATUSES, Role, RideStatus, RideType
from ridehail.domain.errors import (
    ActiveRideExists,
    PermissionDenied,
    RideNotFound,
    RideUnavailable,
    ValidationError,
)
from ridehail.infrastructure.models import RideModel
from ridehail.infrastructure.repositories import RideRepository

logger = logging.getLogger(__name__)


def requires_role(*roles: Role, denied: str):
    """Gate an operation on ``caller.role``; *denied* is the 403 message."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, caller: Caller, *args, **kwargs):
            if caller.role not in roles:
                raise PermissionDenied(denied)
            return await func(self, caller, *args, **kwargs)

        wrapper.required_roles = frozenset(roles)
        wrapper.denied_message = denied
        return wrapper

    return decorator


class RideLifecycle:
    def __init__(self, session: AsyncSession, page_size: Optional[int] = None):
        self.rides = RideRepository(session)
        self.page_size = page_size or settings.available_page_size

    # ── Passenger ─────────────────────────────────────────────────

    @requires_role(Role.PASSENGER, denied="Only passengers can book rides")
    async def book(
        self,
        caller: Caller,
        *,
        pickup_location: str,
        drop_location: str,
        ride_type: RideType,
        distance_km: float,
        fare: float,
        discounted_fare: Optional[float] = None,
    ) -> RideModel:
        validate_booking(
            pickup_location, drop_location, distance_km, fare, discounted_fare
        )
        if await self.rides.get_active_for_passenger(caller.id):
            raise ActiveRideExists(
                "You already have an active ride. Please complete or cancel it first."
            )

        ride = await self.rides.create_ride(
            passenger_id=caller.id,
            pickup_location=pickup_location.strip(),
            drop_location=drop_location.strip(),
            ride_type=RideType(ride_type),
            distance_km=distance_km,
            fare=fare,
            discounted_fare=discounted_fare,
        )
        logger.info("Ride %s booked by passenger %s", ride.id, caller.id)
        return ride

    @requires_role(Role.PASSENGER, denied="Only passengers can rate rides")
    async def rate(self, caller: Caller, ride_id: int, rating: float) -> RideModel:
        ride = await self._get(ride_id)
        if not is_party(ride, caller):
            raise PermissionDenied("You can only rate your own rides")
        if RideStatus(ride.status) != RideStatus.COMPLETED:
            raise ValidationError("Only completed rides can be rated")
        if ride.rating is not None:
            raise ValidationError("Ride has already been rated")
        validate_rating(rating)

        updated = await self.rides.conditional_update(
            ride.id,
            expected_status=RideStatus.COMPLETED,
            require_unrated=True,
            rating=rating,
        )
        if not updated:
            raise ValidationError("Ride has already been rated")
        return await self.rides.reload(ride.id)

    @requires_role(Role.PASSENGER, denied="Only passengers can view their rides")
    async def list_for_passenger(self, caller: Caller) -> list[RideModel]:
        return await self.rides.get_for_passenger(caller.id)

    # ── Driver ────────────────────────────────────────────────────

    @requires_role(Role.DRIVER, denied="Only drivers can view available rides")
    async def list_available(self, caller: Caller) -> list[RideModel]:
        return await self.rides.get_available(self.page_size)

    @requires_role(Role.DRIVER, denied="Only drivers can accept rides")
    async def accept(self, caller: Caller, ride_id: int) -> RideModel:
        if await self.rides.get_active_for_driver(caller.id):
            raise ActiveRideExists(
                "You already have an active ride. Please complete it first."
            )

        ride = await self._get(ride_id)
        if RideStatus(ride.status) != RideStatus.REQUESTED:
            raise RideUnavailable()
        if ride.driver_id is not None:
            raise RideUnavailable(
                "This ride has already been accepted by another driver"
            )

        # status = requested AND driver_id IS NULL, in the same statement
        accepted = await self.rides.conditional_update(
            ride.id,
            expected_status=RideStatus.REQUESTED,
            expected_driver_id=None,
            status=RideStatus.ACCEPTED,
            driver_id=caller.id,
        )
        if not accepted:
            logger.info("Driver %s lost the race for ride %s", caller.id, ride.id)
            raise RideUnavailable()

        logger.info("Ride %s accepted by driver %s", ride.id, caller.id)
        return await self.rides.reload(ride.id)

    @requires_role(Role.DRIVER, denied="Only drivers can reject rides")
    async def reject(self, caller: Caller, ride_id: int) -> None:
        ride = await self._get(ride_id)
        if RideStatus(ride.status) != RideStatus.REQUESTED:
            raise RideUnavailable()
        # Acknowledgement only; the ride stays offered to every driver
        logger.info("Ride %s rejected by driver %s", ride.id, caller.id)

    @requires_role(Role.DRIVER, denied="Only drivers can update ride status")
    async def update_status(
        self, caller: Caller, ride_id: int, new_status: RideStatus
    ) -> RideModel:
        try:
            new_status = RideStatus(new_status)
        except ValueError:
            raise ValidationError("Invalid status provided") from None
        if new_status not in UPDATABLE_STATUSES:
            raise ValidationError("Invalid status provided")

        ride = await self._get(ride_id)
        if not is_party(ride, caller):
            raise PermissionDenied("You can only update your own rides")

        current = RideStatus(ride.status)
        ensure_transition(current, new_status)

        values = {"status": new_status}
        if new_status == RideStatus.CANCELLED:
            values["cancelled_by"] = Role.DRIVER
        updated = await self.rides.conditional_update(
            ride.id,
            expected_status=current,
            expected_driver_id=caller.id,
            **values,
        )
        if not updated:
            raise RideUnavailable("Ride status changed, please refresh and retry")

        logger.info(
            "Ride %s moved %s -> %s by driver %s",
            ride.id, current.value, new_status.value, caller.id,
        )
        return await self.rides.reload(ride.id)

    @requires_role(Role.DRIVER, denied="Only drivers can view their rides")
    async def list_for_driver(self, caller: Caller) -> list[RideModel]:
        return await self.rides.get_for_driver(caller.id)

    @requires_role(Role.DRIVER, denied="Only drivers can view stats")
    async def stats(self, caller: Caller, tz_name: Optional[str] = None) -> DriverStats:
        start, end = day_bounds(tz_name or settings.default_timezone)
        completed = await self.rides.get_completed_for_driver(caller.id)
        today = await self.rides.get_completed_for_driver(
            caller.id, since=start, until=end
        )
        return driver_stats(completed, today)

    # ── Either party ──────────────────────────────────────────────

    @requires_role(
        Role.PASSENGER,
        Role.DRIVER,
        denied="You do not have permission to cancel this ride",
    )
    async def cancel(self, caller: Caller, ride_id: int) -> RideModel:
        ride = await self._get(ride_id)
        if not is_party(ride, caller):
            raise PermissionDenied("You do not have permission to cancel this ride")

        current = RideStatus(ride.status)
        if current == RideStatus.COMPLETED:
            raise ValidationError("Cannot cancel a completed ride")
        if current == RideStatus.CANCELLED:
            raise ValidationError("Ride is already cancelled")
        ensure_transition(current, RideStatus.CANCELLED)

        updated = await self.rides.conditional_update(
            ride.id,
            expected_status=current,
            status=RideStatus.CANCELLED,
            cancelled_by=caller.role,
        )
        if not updated:
            raise RideUnavailable("Ride status changed, please refresh and retry")

        logger.info("Ride %s cancelled by %s %s", ride.id, caller.role.value, caller.id)
        return await self.rides.reload(ride.id)

    # ── Helpers ───────────────────────────────────────────────────

    async def _get(self, ride_id: int) -> RideModel:
        ride = await self.rides.get_by_id(ride_id)
        if not ride:
            raise RideNotFound()
        return ride
