"""
Ride endpoints
==============

POST /rides/book             -- passenger books a ride (201)
GET  /rides/available        -- driver lists open requests (newest 10)
POST /rides/{ride_id}/accept -- driver takes a ride
POST /rides/{ride_id}/reject -- driver passes on a ride (nothing persisted)
POST /rides/{ride_id}/status -- assigned driver moves the ride along
POST /rides/{ride_id}/cancel -- either party cancels
POST /rides/{ride_id}/rate   -- passenger rates a completed ride
GET  /rides/passenger        -- passenger's rides, newest first
GET  /rides/driver           -- driver's rides, newest first
GET  /rides/driver/stats     -- driver's earnings and rating
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import caller_for, get_current_caller, get_db
from ridehail.api.middleware import RATE_LIMIT, limiter
from ridehail.api.schemas import (
    BookRideRequest,
    DriverStatsResponse,
    ErrorResponse,
    MessageResponse,
    RateRideRequest,
    RideEnvelope,
    RideListResponse,
    RideResponse,
    StatsEnvelope,
    StatusUpdateRequest,
)
from ridehail.domain.entities import Caller
from ridehail.services.ride_lifecycle import RideLifecycle

router = APIRouter(prefix="/rides", tags=["rides"])

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Validation failure or invalid state"},
    401: {"model": ErrorResponse, "description": "No valid session"},
    403: {"model": ErrorResponse, "description": "Wrong role or not a party to the ride"},
}
_ERRORS_WITH_404 = {
    **_ERRORS,
    404: {"model": ErrorResponse, "description": "Ride not found"},
}


def _envelope(message: str, ride) -> RideEnvelope:
    return RideEnvelope(message=message, ride=RideResponse.model_validate(ride))


def _listing(rides) -> RideListResponse:
    return RideListResponse(rides=[RideResponse.model_validate(r) for r in rides])


@router.post(
    "/book",
    status_code=201,
    response_model=RideEnvelope,
    summary="Book a ride (passengers only)",
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def book_ride(
    request: Request,
    body: BookRideRequest,
    caller: Caller = Depends(caller_for(RideLifecycle.book)),
    db: AsyncSession = Depends(get_db),
):
    ride = await RideLifecycle(db).book(
        caller,
        pickup_location=body.pickup_location,
        drop_location=body.drop_location,
        ride_type=body.ride_type,
        distance_km=body.distance_km,
        fare=body.fare,
        discounted_fare=body.discounted_fare,
    )
    return _envelope("Ride booked successfully", ride)


@router.get(
    "/available",
    response_model=RideListResponse,
    summary="List requested rides with no driver (drivers only)",
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def available_rides(
    request: Request,
    caller: Caller = Depends(caller_for(RideLifecycle.list_available)),
    db: AsyncSession = Depends(get_db),
):
    return _listing(await RideLifecycle(db).list_available(caller))


@router.get(
    "/passenger",
    response_model=RideListResponse,
    summary="List the caller's rides as passenger",
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def passenger_rides(
    request: Request,
    caller: Caller = Depends(caller_for(RideLifecycle.list_for_passenger)),
    db: AsyncSession = Depends(get_db),
):
    return _listing(await RideLifecycle(db).list_for_passenger(caller))


@router.get(
    "/driver",
    response_model=RideListResponse,
    summary="List the caller's rides as driver",
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def driver_rides(
    request: Request,
    caller: Caller = Depends(caller_for(RideLifecycle.list_for_driver)),
    db: AsyncSession = Depends(get_db),
):
    return _listing(await RideLifecycle(db).list_for_driver(caller))


@router.get(
    "/driver/stats",
    response_model=StatsEnvelope,
    summary="Earnings and rating over completed rides (drivers only)",
    description=(
        "``today*`` figures cover rides requested during the caller's local "
        "calendar day; pass ``tz`` (an IANA zone name) to set it."
    ),
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def driver_stats(
    request: Request,
    tz: Optional[str] = Query(None, description="IANA timezone, e.g. Asia/Karachi"),
    caller: Caller = Depends(caller_for(RideLifecycle.stats)),
    db: AsyncSession = Depends(get_db),
):
    stats = await RideLifecycle(db).stats(caller, tz)
    return StatsEnvelope(stats=DriverStatsResponse(**stats.as_dict()))


@router.post(
    "/{ride_id}/accept",
    response_model=RideEnvelope,
    summary="Accept a ride request (drivers only)",
    description=(
        "A driver with a ride in ``accepted`` or ``in_progress`` cannot accept "
        "another.  The assignment is a single conditional update, so of two "
        "concurrent accepts exactly one wins."
    ),
    responses=_ERRORS_WITH_404,
)
@limiter.limit(RATE_LIMIT)
async def accept_ride(
    request: Request,
    ride_id: int,
    caller: Caller = Depends(caller_for(RideLifecycle.accept)),
    db: AsyncSession = Depends(get_db),
):
    ride = await RideLifecycle(db).accept(caller, ride_id)
    return _envelope("Ride accepted successfully", ride)


@router.post(
    "/{ride_id}/reject",
    response_model=MessageResponse,
    summary="Reject a ride (drivers only)",
    description="Acknowledges the rejection; nothing is persisted.",
    responses=_ERRORS_WITH_404,
)
@limiter.limit(RATE_LIMIT)
async def reject_ride(
    request: Request,
    ride_id: int,
    caller: Caller = Depends(caller_for(RideLifecycle.reject)),
    db: AsyncSession = Depends(get_db),
):
    await RideLifecycle(db).reject(caller, ride_id)
    return MessageResponse(message="Ride rejected successfully")


@router.post(
    "/{ride_id}/status",
    response_model=RideEnvelope,
    summary="Update the status of a ride (assigned driver only)",
    responses=_ERRORS_WITH_404,
)
@limiter.limit(RATE_LIMIT)
async def update_ride_status(
    request: Request,
    ride_id: int,
    body: StatusUpdateRequest,
    caller: Caller = Depends(caller_for(RideLifecycle.update_status)),
    db: AsyncSession = Depends(get_db),
):
    ride = await RideLifecycle(db).update_status(caller, ride_id, body.status)
    return _envelope("Ride status updated successfully", ride)


@router.post(
    "/{ride_id}/cancel",
    response_model=RideEnvelope,
    summary="Cancel a ride (its passenger or driver)",
    responses=_ERRORS_WITH_404,
)
@limiter.limit(RATE_LIMIT)
async def cancel_ride(
    request: Request,
    ride_id: int,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    ride = await RideLifecycle(db).cancel(caller, ride_id)
    return _envelope("Ride cancelled successfully", ride)


@router.post(
    "/{ride_id}/rate",
    response_model=RideEnvelope,
    summary="Rate a completed ride (its passenger only)",
    responses=_ERRORS_WITH_404,
)
@limiter.limit(RATE_LIMIT)
async def rate_ride(
    request: Request,
    ride_id: int,
    body: RateRideRequest,
    caller: Caller = Depends(caller_for(RideLifecycle.rate)),
    db: AsyncSession = Depends(get_db),
):
    ride = await RideLifecycle(db).rate(caller, ride_id, body.rating)
    return _envelope("Ride rated successfully", ride)
