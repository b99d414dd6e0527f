"""
Error taxonomy for the availability engine and its HTTP mapping.

Services raise these; main.py registers one handler that turns them into
responses so routers stay thin.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

# ---------------------------------------------------------------------------
# Constants: status codes and stable error codes
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409

CODE_VALIDATION = "validation_error"
CODE_CONFLICT = "conflict"
CODE_PAST_TIME = "past_time"
CODE_NOT_FOUND = "not_found"
CODE_INVALID_TRANSITION = "invalid_transition"
CODE_BOOKING_WINDOW = "booking_window"


class BookingError(Exception):
    """Base for expected, caller-recoverable conditions."""

    status_code = STATUS_BAD_REQUEST
    code = CODE_VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": self.message}


class ValidationError(BookingError):
    """Malformed input (bad range, unknown day, ...), raised before any write."""


class InvalidTransitionError(ValidationError):
    code = CODE_INVALID_TRANSITION


class BookingWindowError(ValidationError):
    code = CODE_BOOKING_WINDOW


class PastTimeError(BookingError):
    """Requested start has already elapsed in the kitchen's local time."""

    code = CODE_PAST_TIME


class NotFoundError(BookingError):
    status_code = STATUS_NOT_FOUND
    code = CODE_NOT_FOUND


class ConflictError(BookingError):
    """A mutation or reservation request intersects active reservations.

    `reservations` are the offending rows (may be empty when the storage
    backstop fired and the competing row is not visible to us).
    """

    status_code = STATUS_CONFLICT
    code = CODE_CONFLICT

    def __init__(self, message: str, reservations: Optional[Sequence[Any]] = None):
        super().__init__(message)
        self.reservations = list(reservations or [])

    def conflicts(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": r.id,
                "chef_id": r.chef_id,
                "booking_date": r.booking_date.isoformat(),
                "start_time": r.start_time.strftime("%H:%M"),
                "end_time": r.end_time.strftime("%H:%M"),
                "status": r.status.value,
            }
            for r in self.reservations
        ]

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["conflicts"] = self.conflicts()
        return body
