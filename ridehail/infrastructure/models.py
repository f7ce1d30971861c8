"""
SQLAlchemy ORM models.

Tables
------
* ``users`` -- passengers and drivers (role fixed per account)
* ``rides`` -- one row per ride, never deleted

Indexes
-------
* **B-Tree** on ``status``, ``passenger_id``, ``driver_id``, ``requested_at``
  for the listing queries.
* **Partial unique** indexes back the one-active-ride-per-party invariants:
  a passenger may hold one ride in requested/accepted/in_progress, a driver
  one ride in accepted/in_progress.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
    text,
)
from sqlalchemy.orm import relationship

from .database import Base
from ridehail.domain.enums import Role, RideStatus, RideType

PASSENGER_ACTIVE_WHERE = text("status IN ('requested', 'accepted', 'in_progress')")
DRIVER_ACTIVE_WHERE = text("status IN ('accepted', 'in_progress')")


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(32), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(Role, name="role", values_callable=_enum_values), nullable=False
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    passenger_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    pickup_location = Column(String(255), nullable=False)
    drop_location = Column(String(255), nullable=False)
    distance_km = Column(Float, nullable=False)
    ride_type = Column(
        Enum(RideType, name="ridetype", values_callable=_enum_values),
        nullable=False,
    )
    fare = Column(Float, nullable=False)
    discounted_fare = Column(Float, nullable=True)

    status = Column(
        Enum(RideStatus, name="ridestatus", values_callable=_enum_values),
        default=RideStatus.REQUESTED,
        nullable=False,
    )
    cancelled_by = Column(
        Enum(Role, name="role", values_callable=_enum_values), nullable=True
    )
    rating = Column(Float, nullable=True)

    # Python-side default keeps sub-second ordering on every backend
    requested_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    passenger = relationship(
        UserModel, foreign_keys=[passenger_id], lazy="selectin"
    )
    driver = relationship(UserModel, foreign_keys=[driver_id], lazy="selectin")

    __table_args__ = (
        CheckConstraint("fare > 0", name="ck_rides_fare_positive"),
        CheckConstraint("distance_km > 0", name="ck_rides_distance_positive"),
        CheckConstraint(
            "discounted_fare IS NULL OR discounted_fare <= fare",
            name="ck_rides_discount_not_above_fare",
        ),
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)",
            name="ck_rides_rating_range",
        ),
        Index("idx_rides_status", "status"),
        Index("idx_rides_passenger", "passenger_id"),
        Index("idx_rides_driver", "driver_id"),
        Index("idx_rides_requested_at", "requested_at"),
        Index(
            "uq_rides_passenger_active",
            "passenger_id",
            unique=True,
            postgresql_where=PASSENGER_ACTIVE_WHERE,
            sqlite_where=PASSENGER_ACTIVE_WHERE,
        ),
        Index(
            "uq_rides_driver_active",
            "driver_id",
            unique=True,
            postgresql_where=DRIVER_ACTIVE_WHERE,
            sqlite_where=DRIVER_ACTIVE_WHERE,
        ),
    )
