"""Errors raised by unit management.

Each error carries the HTTP status the route layer responds with.
Messages are user-facing.
"""


class UnitManagementError(Exception):
    """Base error for unit membership and rank management."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """JSON body for an error response."""
        return {"error": self.message}


class Unauthenticated(UnitManagementError):
    """Missing or invalid credential."""

    status = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class Forbidden(UnitManagementError):
    """Authenticated, but not allowed to perform the requested change."""

    status = 403

    def __init__(self, message: str, reason: str = "insufficient_level") -> None:
        super().__init__(message)
        self.reason = reason

    def to_dict(self) -> dict:
        return {"error": self.message, "reason": self.reason}


class NotFound(UnitManagementError):
    """Unknown unit or unknown officer."""

    status = 404


class InvalidRequest(UnitManagementError):
    """Malformed request. Raised before any authorization check."""

    status = 400


class Conflict(UnitManagementError):
    """The officer record changed between read and write."""

    status = 409

    def __init__(
        self, message: str = "Officer profile was modified concurrently, try again"
    ) -> None:
        super().__init__(message)
