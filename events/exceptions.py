# events/exceptions.py
"""
Rejections raised by the allocation engine.

Every rejection is an expected outcome: it carries a stable reason code and a
human-readable message, and DRF renders it through
core.exceptions.custom_exception_handler. None of them are retried.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class AllocationError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request rejected."
    default_code = "rejected"

    def __init__(self, message=None, code=None):
        super().__init__(detail=message, code=code)
        self.code = code or self.default_code
        self.message = str(self.detail)

    def as_dict(self):
        return {"code": self.code, "message": self.message}


class ValidationFailed(AllocationError):
    """Malformed or missing input. Caller's fault."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "invalid_payload"


class CapacityExceeded(AllocationError):
    """Event full, out of stock, team limit reached or team full."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "No capacity left."
    default_code = "capacity_exceeded"


class AlreadyRegistered(AllocationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You have already registered for this event."
    default_code = "already_registered"


class AlreadyInTeam(AllocationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You are already in a team for this event."
    default_code = "already_in_team"


class NotFound(AllocationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class StateConflict(AllocationError):
    """Operation not legal for the current lifecycle state."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Operation not allowed in the current state."
    default_code = "invalid_transition"


class TeamCodeExhausted(AllocationError):
    """No free team code within the configured number of attempts."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Could not allocate a team code, please try again."
    default_code = "team_code_exhausted"
