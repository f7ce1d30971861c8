"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.

Every ride mutation goes through ``conditional_update``: the WHERE clause
restates the precondition the caller checked, so a row changed by a
concurrent request in between is reported (zero rows) instead of being
silently overwritten.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import RideModel, UserModel
from ridehail.domain.enums import (
    DRIVER_ACTIVE_STATUSES,
    PASSENGER_ACTIVE_STATUSES,
    Role,
    RideStatus,
    RideType,
)
from ridehail.domain.errors import AccountExists, ActiveRideExists

_UNSET: Any = object()


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_ride(
        self,
        *,
        passenger_id: int,
        pickup_location: str,
        drop_location: str,
        ride_type: RideType,
        distance_km: float,
        fare: float,
        discounted_fare: float | None = None,
    ) -> RideModel:
        ride = RideModel(
            passenger_id=passenger_id,
            pickup_location=pickup_location,
            drop_location=drop_location,
            ride_type=ride_type,
            distance_km=distance_km,
            fare=fare,
            discounted_fare=discounted_fare,
            status=RideStatus.REQUESTED,
        )
        self.session.add(ride)
        try:
            await self.session.flush()
        except IntegrityError:
            raise ActiveRideExists(
                "You already have an active ride. Please complete or cancel it first."
            ) from None
        return await self.reload(ride.id)

    async def get_by_id(self, ride_id: int) -> Optional[RideModel]:
        return await self.session.get(RideModel, ride_id)

    async def reload(self, ride_id: int) -> Optional[RideModel]:
        """Re-read a ride (and its parties) bypassing the identity map."""
        return await self.session.get(RideModel, ride_id, populate_existing=True)

    async def conditional_update(
        self,
        ride_id: int,
        *,
        expected_status: RideStatus,
        expected_driver_id: Optional[int] = _UNSET,
        require_unrated: bool = False,
        **values,
    ) -> bool:
        """
        ``UPDATE rides SET <values> WHERE id = :id AND status = :expected ...``

        Returns ``True`` when exactly one row matched.  A violation of the
        one-active-ride-per-driver index surfaces as ``ActiveRideExists``.
        """
        stmt = (
            update(RideModel)
            .where(RideModel.id == ride_id)
            .where(RideModel.status == expected_status)
        )
        if expected_driver_id is None:
            stmt = stmt.where(RideModel.driver_id.is_(None))
        elif expected_driver_id is not _UNSET:
            stmt = stmt.where(RideModel.driver_id == expected_driver_id)
        if require_unrated:
            stmt = stmt.where(RideModel.rating.is_(None))
        stmt = stmt.values(**values).execution_options(synchronize_session=False)

        try:
            result = await self.session.execute(stmt)
        except IntegrityError:
            raise ActiveRideExists(
                "You already have an active ride. Please complete it first."
            ) from None
        return result.rowcount == 1

    async def get_active_for_passenger(self, passenger_id: int) -> Optional[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.passenger_id == passenger_id)
            .where(RideModel.status.in_(list(PASSENGER_ACTIVE_STATUSES)))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_active_for_driver(self, driver_id: int) -> Optional[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.driver_id == driver_id)
            .where(RideModel.status.in_(list(DRIVER_ACTIVE_STATUSES)))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_available(self, limit: int) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.status == RideStatus.REQUESTED)
            .where(RideModel.driver_id.is_(None))
            .order_by(RideModel.requested_at.desc(), RideModel.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_for_passenger(self, passenger_id: int) -> list[RideModel]:
        return await self._newest_first(RideModel.passenger_id == passenger_id)

    async def get_for_driver(self, driver_id: int) -> list[RideModel]:
        return await self._newest_first(RideModel.driver_id == driver_id)

    async def get_completed_for_driver(
        self,
        driver_id: int,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[RideModel]:
        query = (
            select(RideModel)
            .where(RideModel.driver_id == driver_id)
            .where(RideModel.status == RideStatus.COMPLETED)
        )
        if since is not None:
            query = query.where(RideModel.requested_at >= since)
        if until is not None:
            query = query.where(RideModel.requested_at < until)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def _newest_first(self, condition) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(condition)
            .order_by(RideModel.requested_at.desc(), RideModel.id.desc())
        )
        return list(result.scalars().all())


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_user(
        self,
        *,
        name: str,
        email: str,
        phone: str,
        password_hash: str,
        role: Role,
    ) -> UserModel:
        user = UserModel(
            name=name,
            email=email,
            phone=phone,
            password_hash=password_hash,
            role=role,
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError:
            raise AccountExists() from None
        return user

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email)
        )
        return result.scalar_one_or_none()

    async def get_by_phone(self, phone: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.phone == phone)
        )
        return result.scalar_one_or_none()
