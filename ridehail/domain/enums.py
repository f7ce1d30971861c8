"""Domain enumerations and state-transition rules."""

import enum


class Role(str, enum.Enum):
    PASSENGER = "passenger"
    DRIVER = "driver"


class RideStatus(str, enum.Enum):
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RideType(str, enum.Enum):
    BIKE = "bike"
    CAR = "car"
    RICKSHAW = "rickshaw"


# State machine: maps current status -> set of valid next statuses
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.REQUESTED: {RideStatus.ACCEPTED, RideStatus.CANCELLED},
    RideStatus.ACCEPTED: {RideStatus.IN_PROGRESS, RideStatus.CANCELLED},
    RideStatus.IN_PROGRESS: {RideStatus.COMPLETED, RideStatus.CANCELLED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}

# "Active" from each party's point of view
PASSENGER_ACTIVE_STATUSES = frozenset(
    {RideStatus.REQUESTED, RideStatus.ACCEPTED, RideStatus.IN_PROGRESS}
)
DRIVER_ACTIVE_STATUSES = frozenset({RideStatus.ACCEPTED, RideStatus.IN_PROGRESS})

# Targets a driver may name when updating status (everything but the initial one)
UPDATABLE_STATUSES = frozenset(RIDE_TRANSITIONS) - {RideStatus.REQUESTED}
