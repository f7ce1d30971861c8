"""Domain exceptions.  Each carries a message that is safe to show the caller."""


class RideHailError(Exception):
    """Base class for every expected, caller-facing failure."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RideHailError):
    default_message = "Missing required fields"


class AuthenticationError(RideHailError):
    default_message = "Unauthorized"


class PermissionDenied(RideHailError):
    default_message = "Forbidden"


class RideNotFound(RideHailError):
    default_message = "Ride not found"


class InvalidStateTransition(RideHailError):
    """Raised when a ride status change violates the state machine."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot transition from {_value(current)} to {_value(requested)}"
        )


class RideUnavailable(RideHailError):
    default_message = "This ride is no longer available"


class ActiveRideExists(RideHailError):
    default_message = "You already have an active ride"


class AccountExists(RideHailError):
    default_message = "A user with this email or phone number already exists"


def _value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)
