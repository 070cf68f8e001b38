class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` is the stable, transport-independent name callers match on.
    """

    kind = "DomainError"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "ValidationError"


class NotFound(DomainError):
    kind = "NotFound"


class OutsideGeofence(DomainError):
    """Punch location is farther from the office than the allowed radius."""

    kind = "OutsideGeofence"

    def __init__(self, distance_m: float, radius_m: float):
        super().__init__(f"Punch is {distance_m:.0f} m from the office (allowed {radius_m:.0f} m)")
        self.distance_m = distance_m
        self.radius_m = radius_m


class OutsideNightWindow(DomainError):
    kind = "OutsideNightWindow"


class AlreadyPunchedIn(DomainError):
    kind = "AlreadyPunchedIn"


class NoOpenPunch(DomainError):
    kind = "NoOpenPunch"


class RecordLocked(DomainError):
    kind = "RecordLocked"


class NotPending(DomainError):
    kind = "NotPending"


class InvalidTransition(DomainError):
    kind = "InvalidTransition"


class PolicyNotConfigured(DomainError):
    kind = "PolicyNotConfigured"


class MissingRate(PolicyNotConfigured):
    """The employee has no rate for their salary type."""
