"""
Scheduling error kinds.

Services raise these directly; they are HTTPExceptions so FastAPI renders them
without extra handlers, and each carries a stable ``code`` for clients that need
to tell "link expired" apart from "already handled".
"""

from typing import Optional

from fastapi import HTTPException


class SchedulingError(HTTPException):
    """Base class for scheduling errors"""

    status_code = 400
    code = "scheduling_error"
    default_detail = "Scheduling error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": detail or self.default_detail},
        )

    @property
    def message(self) -> str:
        return self.detail["message"]


class ValidationError(SchedulingError):
    """Malformed template, bad duration, invalid weekday/time, structural batch error"""

    status_code = 422
    code = "validation_error"
    default_detail = "Invalid scheduling request"


class InvalidTransitionError(ValidationError):
    """Status or slot change not allowed from the appointment's current status"""

    code = "invalid_transition"
    default_detail = "Appointment status does not allow this change"


class NotFoundError(SchedulingError):
    status_code = 404
    code = "not_found"
    default_detail = "Not found"


class TokenInvalidError(NotFoundError):
    code = "token_invalid"
    default_detail = "Invalid or unknown link"


class ConflictError(SchedulingError):
    """Requested interval is already occupied"""

    status_code = 409
    code = "conflict"
    default_detail = "Time slot is no longer available"


class NotEligibleError(SchedulingError):
    """Token bound to an appointment that is no longer reschedulable"""

    status_code = 409
    code = "not_eligible"
    default_detail = "This appointment can no longer be changed through this link"


class ExpiredError(SchedulingError):
    status_code = 410
    code = "expired"
    default_detail = "This link has expired"
