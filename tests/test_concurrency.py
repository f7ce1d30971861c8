"""
Concurrency safety tests.

Demonstrates:
1. The conditional update behind accept lets exactly one of two drivers win,
   even when both passed the precondition check on a stale read.
2. Status updates and cancels refuse to overwrite a row that changed after
   it was read.
3. The partial unique indexes back the one-active-ride-per-party rule when
   the application-level check is bypassed.
"""

import pytest
import pytest_asyncio
from sqlalchemy import update

from ridehail.domain.enums import RideStatus, RideType
from ridehail.domain.errors import ActiveRideExists, RideUnavailable
from ridehail.infrastructure.models import RideModel
from ridehail.infrastructure.repositories import RideRepository
from ridehail.services.ride_lifecycle import RideLifecycle

BOOKING = dict(
    pickup_location="A",
    drop_location="B",
    ride_type=RideType.CAR,
    distance_km=5,
    fare=80,
)


@pytest_asyncio.fixture
async def lifecycle(db_session):
    return RideLifecycle(db_session)


async def _write_behind_the_session(db_session, ride_id, **values):
    """Simulate another request's committed write: the identity map is left stale."""
    await db_session.execute(
        update(RideModel)
        .where(RideModel.id == ride_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


class TestConditionalAccept:
    @pytest.mark.asyncio
    async def test_only_one_conditional_update_matches(self, db_session, lifecycle, parties):
        ride = await lifecycle.book(parties["p1"], **BOOKING)
        repo = RideRepository(db_session)

        first = await repo.conditional_update(
            ride.id,
            expected_status=RideStatus.REQUESTED,
            expected_driver_id=None,
            status=RideStatus.ACCEPTED,
            driver_id=parties["d1"].id,
        )
        second = await repo.conditional_update(
            ride.id,
            expected_status=RideStatus.REQUESTED,
            expected_driver_id=None,
            status=RideStatus.ACCEPTED,
            driver_id=parties["d2"].id,
        )
        assert (first, second) == (True, False)
        assert (await repo.reload(ride.id)).driver_id == parties["d1"].id

    @pytest.mark.asyncio
    async def test_stale_read_loses_the_race(self, db_session, lifecycle, parties):
        ride = await lifecycle.book(parties["p1"], **BOOKING)
        # d2 wins between d1's read and d1's write
        await _write_behind_the_session(
            db_session, ride.id, status=RideStatus.ACCEPTED, driver_id=parties["d2"].id
        )
        assert ride.status == RideStatus.REQUESTED  # still the stale copy

        with pytest.raises(RideUnavailable, match="no longer available"):
            await lifecycle.accept(parties["d1"], ride.id)

        reloaded = await lifecycle.rides.reload(ride.id)
        assert reloaded.driver_id == parties["d2"].id

    @pytest.mark.asyncio
    async def test_requested_ride_with_a_driver_is_taken(self, db_session, lifecycle, parties):
        ride = await lifecycle.book(parties["p1"], **BOOKING)
        await _write_behind_the_session(db_session, ride.id, driver_id=parties["d2"].id)
        ride = await lifecycle.rides.reload(ride.id)
        assert ride.status == RideStatus.REQUESTED

        with pytest.raises(RideUnavailable, match="already been accepted by another driver"):
            await lifecycle.accept(parties["d1"], ride.id)

        reloaded = await lifecycle.rides.reload(ride.id)
        assert reloaded.driver_id == parties["d2"].id
        assert reloaded.status == RideStatus.REQUESTED


class TestConditionalStatusChanges:
    @pytest.mark.asyncio
    async def test_status_update_on_changed_row_is_refused(self, db_session, lifecycle, parties):
        ride = await lifecycle.book(parties["p1"], **BOOKING)
        ride = await lifecycle.accept(parties["d1"], ride.id)
        await _write_behind_the_session(
            db_session, ride.id, status=RideStatus.CANCELLED
        )

        with pytest.raises(RideUnavailable):
            await lifecycle.update_status(parties["d1"], ride.id, RideStatus.IN_PROGRESS)
        assert (await lifecycle.rides.reload(ride.id)).status == RideStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_on_completed_row_is_refused(self, db_session, lifecycle, parties):
        ride = await lifecycle.book(parties["p1"], **BOOKING)
        ride = await lifecycle.accept(parties["d1"], ride.id)
        await _write_behind_the_session(
            db_session, ride.id, status=RideStatus.COMPLETED
        )

        with pytest.raises(RideUnavailable):
            await lifecycle.cancel(parties["p1"], ride.id)
        assert (await lifecycle.rides.reload(ride.id)).status == RideStatus.COMPLETED


class TestActiveRideIndexes:
    @pytest.mark.asyncio
    async def test_passenger_index_blocks_second_active_ride(self, db_session, parties):
        repo = RideRepository(db_session)
        await repo.create_ride(passenger_id=parties["p1"].id, **BOOKING)
        with pytest.raises(ActiveRideExists):
            await repo.create_ride(passenger_id=parties["p1"].id, **BOOKING)

    @pytest.mark.asyncio
    async def test_driver_index_blocks_second_active_ride(self, db_session, parties):
        repo = RideRepository(db_session)
        one = await repo.create_ride(passenger_id=parties["p1"].id, **BOOKING)
        two = await repo.create_ride(passenger_id=parties["p2"].id, **BOOKING)
        assert await repo.conditional_update(
            one.id,
            expected_status=RideStatus.REQUESTED,
            expected_driver_id=None,
            status=RideStatus.ACCEPTED,
            driver_id=parties["d1"].id,
        )
        with pytest.raises(ActiveRideExists):
            await repo.conditional_update(
                two.id,
                expected_status=RideStatus.REQUESTED,
                expected_driver_id=None,
                status=RideStatus.ACCEPTED,
                driver_id=parties["d1"].id,
            )
