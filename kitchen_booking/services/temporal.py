"""
Timezone-aware classification of reservations.

Reservation rows hold local wall-clock values (date + time). They are
turned into instants with the kitchen's zone and compared against the
current instant, so the result never depends on the server's own zone.
"""
import logging
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from kitchen_booking.core.errors import BookingWindowError, PastTimeError

logger = logging.getLogger(__name__)


class BookingPhase(str, Enum):
    PAST = "past"
    ACTIVE = "active"
    UPCOMING = "upcoming"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_in_timezone(tz_name: str, now: Optional[datetime] = None) -> datetime:
    """Current instant expressed in `tz_name`."""
    return (now or utc_now()).astimezone(ZoneInfo(tz_name))


def local_instant(day: date, at: time, tz_name: str) -> datetime:
    """UTC instant of a wall-clock date/time in `tz_name`."""
    # compare in UTC: same-tzinfo arithmetic ignores DST offsets
    return datetime.combine(day, at, tzinfo=ZoneInfo(tz_name)).astimezone(timezone.utc)


def _utc(now: Optional[datetime]) -> datetime:
    return (now or utc_now()).astimezone(timezone.utc)


def classify_times(
    day: date,
    start: time,
    end: time,
    tz_name: str,
    now: Optional[datetime] = None,
) -> BookingPhase:
    current = _utc(now)
    start_at = local_instant(day, start, tz_name)
    end_at = local_instant(day, end, tz_name)

    if end_at <= current:
        return BookingPhase.PAST
    if start_at <= current:
        return BookingPhase.ACTIVE
    return BookingPhase.UPCOMING


def classify(reservation, tz_name: str, now: Optional[datetime] = None) -> BookingPhase:
    return classify_times(
        reservation.booking_date,
        reservation.start_time,
        reservation.end_time,
        tz_name,
        now,
    )


def hours_until(day: date, start: time, tz_name: str, now: Optional[datetime] = None) -> float:
    """Hours from now until the start (negative once it has passed)."""
    current = _utc(now)
    delta = local_instant(day, start, tz_name) - current
    return delta.total_seconds() / 3600


def is_past(day: date, start: time, tz_name: str, now: Optional[datetime] = None) -> bool:
    return local_instant(day, start, tz_name) < _utc(now)


def ensure_bookable_start(
    day: date,
    start: time,
    tz_name: str,
    minimum_window_hours: int = 0,
    now: Optional[datetime] = None,
) -> None:
    """Reject starts that already elapsed or fall inside the minimum booking window."""
    now = now or utc_now()

    if is_past(day, start, tz_name, now):
        logger.warning("Rejected past start %s %s (%s)", day, start, tz_name)
        raise PastTimeError("Cannot book a time slot that has already passed")

    if minimum_window_hours and hours_until(day, start, tz_name, now) < minimum_window_hours:
        plural = "s" if minimum_window_hours != 1 else ""
        raise BookingWindowError(
            f"Bookings must be made at least {minimum_window_hours} hour{plural} in advance"
        )
