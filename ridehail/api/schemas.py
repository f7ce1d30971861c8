"""Pydantic request / response schemas for the REST API.

JSON keys are camelCase on the wire; snake_case is accepted on input too.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from ridehail.domain.enums import Role, RideStatus, RideType

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


# ── Requests ──────────────────────────────────────────────────────────


class BookRideRequest(BaseModel):
    pickup_location: str = Field(..., min_length=1, max_length=255)
    drop_location: str = Field(..., min_length=1, max_length=255)
    ride_type: RideType
    distance_km: float = Field(..., gt=0)
    fare: float = Field(..., gt=0)
    discounted_fare: Optional[float] = Field(None, gt=0)

    model_config = {**_CAMEL, "str_strip_whitespace": True, "allow_inf_nan": False}

    @model_validator(mode="after")
    def _discount_not_above_fare(self):
        if self.discounted_fare is not None and self.discounted_fare > self.fare:
            raise ValueError("discountedFare cannot exceed fare")
        return self


class StatusUpdateRequest(BaseModel):
    status: str


class RateRideRequest(BaseModel):
    rating: float = Field(..., ge=1, le=5, allow_inf_nan=False)


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8)
    confirm_password: str
    phone_number: str = Field(..., min_length=10, max_length=32)
    role: Role

    model_config = _CAMEL

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# ── Responses ─────────────────────────────────────────────────────────


class PartySummary(BaseModel):
    id: int
    name: str
    phone: str

    model_config = {"from_attributes": True}


class RideResponse(BaseModel):
    id: int
    passenger_id: int
    driver_id: Optional[int] = None
    pickup_location: str
    drop_location: str
    distance_km: float
    ride_type: RideType
    fare: float
    discounted_fare: Optional[float] = None
    status: RideStatus
    cancelled_by: Optional[Role] = None
    rating: Optional[float] = None
    requested_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    passenger: Optional[PartySummary] = None
    driver: Optional[PartySummary] = None

    model_config = {**_CAMEL, "from_attributes": True}


class RideEnvelope(BaseModel):
    message: str
    ride: RideResponse


class RideListResponse(BaseModel):
    rides: list[RideResponse]


class MessageResponse(BaseModel):
    message: str


class DriverStatsResponse(BaseModel):
    total_rides: int
    total_earnings: float
    average_rating: float
    today_rides: int
    today_earnings: float
    today_average_rating: float

    model_config = _CAMEL


class StatsEnvelope(BaseModel):
    stats: DriverStatsResponse


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    role: Role
    created_at: Optional[datetime] = None

    model_config = {**_CAMEL, "from_attributes": True}


class SignupResponse(BaseModel):
    message: str
    user: UserResponse


class LoginResponse(BaseModel):
    message: str
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    user: UserResponse

    model_config = _CAMEL


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    message: str
    errors: Optional[dict[str, list[str]]] = None
