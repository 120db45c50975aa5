"""
This file contains custom, application-specific exceptions.

Every error a matching or lifecycle operation can end with is one of these.
They are raised by the services and rendered by the handler registered in
main.py as {"error": <error_kind>, "detail": <message>}.
"""
from fastapi import status

# Starlette deprecated HTTP_422_UNPROCESSABLE_ENTITY; older releases lack its replacement
HTTP_422_UNPROCESSABLE = 422


class PeerConnectError(Exception):
    """Base class for all domain errors surfaced to API clients."""
    error_kind: str = "PeerConnectError"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error_kind, "detail": self.detail}


class ProfileIncompleteError(PeerConnectError):
    """Raised when the seeker's profile is missing required fields."""
    error_kind = "ProfileIncomplete"
    status_code = status.HTTP_409_CONFLICT


class InvalidAvailabilityError(PeerConnectError):
    """Raised when a date is not offered by the tutor or the time range conflicts."""
    error_kind = "InvalidAvailability"
    status_code = status.HTTP_409_CONFLICT


class InvalidDurationError(PeerConnectError):
    """Raised when end <= start or the session is shorter than the minimum."""
    error_kind = "InvalidDuration"
    status_code = HTTP_422_UNPROCESSABLE


class InvalidTransitionError(PeerConnectError):
    """Raised for an illegal state/actor combination on a session."""
    error_kind = "InvalidTransition"
    status_code = status.HTTP_409_CONFLICT


class SubjectRequiredError(PeerConnectError):
    """Raised when a booking has neither (or both) a subject id and a custom subject."""
    error_kind = "SubjectRequired"
    status_code = HTTP_422_UNPROCESSABLE


class ReviewNotAllowedError(PeerConnectError):
    """Raised when the session is not completed or is already reviewed."""
    error_kind = "ReviewNotAllowed"
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(PeerConnectError):
    """Raised when a session, profile, subject or notification id is unknown."""
    error_kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedError(PeerConnectError):
    """Raised when the actor has no business with the resource."""
    error_kind = "Unauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidProfileError(PeerConnectError):
    """Raised when submitted profile fields break the profile invariants."""
    error_kind = "InvalidProfile"
    status_code = HTTP_422_UNPROCESSABLE
