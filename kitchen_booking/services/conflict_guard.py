"""
Guards mutations that would close hours already held by active reservations.

A mutation is described by the windows before and after it; whatever it
removes must not intersect a pending or confirmed reservation. There is
no forced path: a hit rejects the whole mutation.
"""
import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from sqlmodel import Session, select

from kitchen_booking.core.errors import ConflictError
from kitchen_booking.core.intervals import Interval, format_minutes, overlaps, subtract, union
from kitchen_booking.models.reservation import ACTIVE_STATUSES, Reservation
from kitchen_booking.models.weekly_availability import WeeklyAvailabilityRule
from kitchen_booking.services import temporal
from kitchen_booking.services.availability import compose_windows, day_of_week, get_date_overrides
from kitchen_booking.services.slots import get_active_reservations, reservation_interval

logger = logging.getLogger(__name__)


def intersecting(reservations: Iterable[Reservation], ranges: Iterable[Interval]) -> List[Reservation]:
    ranges = union(ranges)
    hits = []
    for reservation in reservations:
        r_start, r_end = reservation_interval(reservation)
        if any(overlaps(r_start, r_end, start, end) for start, end in ranges):
            hits.append(reservation)
    return hits


def find_conflicts(session: Session, kitchen_id: int, day: date, ranges: Iterable[Interval]) -> List[Reservation]:
    """Active reservations on `day` intersecting any of `ranges`."""
    ranges = list(ranges)
    if not ranges:
        return []
    return intersecting(get_active_reservations(session, kitchen_id, day), ranges)


def _describe(ranges: List[Interval]) -> str:
    return ", ".join(f"{format_minutes(s)}-{format_minutes(e)}" for s, e in ranges)


def ensure_no_conflicts(
    session: Session,
    kitchen_id: int,
    day: date,
    ranges: Iterable[Interval],
    action: str = "close",
) -> None:
    ranges = union(ranges)
    conflicts = find_conflicts(session, kitchen_id, day, ranges)
    if conflicts:
        logger.warning(
            "Rejected %s on kitchen %s %s (%s): %d active reservation(s)",
            action, kitchen_id, day, _describe(ranges), len(conflicts),
        )
        raise ConflictError(
            f"Cannot {action} {_describe(ranges)} on {day.isoformat()}: "
            f"{len(conflicts)} active reservation(s) in that range",
            conflicts,
        )


def guard_window_change(
    session: Session,
    kitchen_id: int,
    day: date,
    before: List[Interval],
    after: List[Interval],
    action: str = "close",
) -> List[Interval]:
    """Reject if the hours lost going from `before` to `after` hold reservations.

    Returns the removed ranges (empty when the change only widens the day).
    """
    removed = subtract(before, after)
    if removed:
        ensure_no_conflicts(session, kitchen_id, day, removed, action)
    return removed


def guard_weekly_change(
    session: Session,
    kitchen_id: int,
    dow: int,
    current: Optional[WeeklyAvailabilityRule],
    proposed: WeeklyAvailabilityRule,
    tz_name: str,
    now: Optional[datetime] = None,
) -> None:
    """Check every upcoming date of weekday `dow` still served by the template.

    Dates whose overrides supply their own base are unaffected by the
    template and come out with identical before/after windows. Reservations
    that already ended in the kitchen's zone are ignored.
    """
    from_date = temporal.now_in_timezone(tz_name, now).date()
    upcoming = session.exec(
        select(Reservation)
        .where(
            Reservation.kitchen_id == kitchen_id,
            Reservation.booking_date >= from_date,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
        .order_by(Reservation.booking_date, Reservation.start_time)
    ).all()

    by_date: Dict[date, List[Reservation]] = defaultdict(list)
    for reservation in upcoming:
        if day_of_week(reservation.booking_date) != dow:
            continue
        if temporal.classify(reservation, tz_name, now) != temporal.BookingPhase.PAST:
            by_date[reservation.booking_date].append(reservation)

    conflicts: List[Reservation] = []
    for day, reservations in sorted(by_date.items()):
        overrides = get_date_overrides(session, kitchen_id, day)
        removed = subtract(compose_windows(current, overrides), compose_windows(proposed, overrides))
        conflicts.extend(intersecting(reservations, removed))

    if conflicts:
        logger.warning(
            "Rejected weekly change for kitchen %s day %s: %d active reservation(s)",
            kitchen_id, dow, len(conflicts),
        )
        raise ConflictError(
            f"Cannot change weekly hours: {len(conflicts)} upcoming reservation(s) fall in the hours being closed",
            conflicts,
        )
