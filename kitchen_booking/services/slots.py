"""
Slot discretization and reservation filtering (read path).
"""
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from sqlmodel import Session, select

from kitchen_booking.config import settings
from kitchen_booking.core.intervals import Interval, format_minutes, overlaps, to_minutes, union
from kitchen_booking.models.reservation import ACTIVE_STATUSES, Reservation
from kitchen_booking.services.availability import resolve_open_windows
from kitchen_booking.services.kitchens import get_active_kitchen


def discretize(windows: Iterable[Interval], granularity: int) -> List[int]:
    """Slot starts s with [s, s + granularity) inside a window.

    Slots step from each window's own start; no wall-clock alignment.
    """
    if granularity <= 0:
        raise ValueError("granularity must be positive")

    starts = set()
    for start, end in union(windows):
        current = start
        while current + granularity <= end:
            starts.add(current)
            current += granularity
    return sorted(starts)


def reservation_interval(reservation: Reservation) -> Interval:
    return to_minutes(reservation.start_time), to_minutes(reservation.end_time)


def occupying_reservation(
    slot: int, granularity: int, reservations: Sequence[Reservation]
) -> Optional[Reservation]:
    for reservation in reservations:
        r_start, r_end = reservation_interval(reservation)
        if overlaps(slot, slot + granularity, r_start, r_end):
            return reservation
    return None


def filter_reserved(slots: Iterable[int], granularity: int, reservations: Sequence[Reservation]) -> List[int]:
    """Drop every slot whose [s, s + granularity) touches an active reservation."""
    active = [r for r in reservations if r.is_active]
    return [s for s in slots if occupying_reservation(s, granularity, active) is None]


def get_active_reservations(session: Session, kitchen_id: int, day: date) -> List[Reservation]:
    return list(
        session.exec(
            select(Reservation)
            .where(
                Reservation.kitchen_id == kitchen_id,
                Reservation.booking_date == day,
                Reservation.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Reservation.start_time)
        ).all()
    )


def resolve_available_slots(
    session: Session,
    kitchen_id: int,
    day: date,
    granularity: Optional[int] = None,
) -> List[str]:
    """Ordered "HH:MM" slot starts that are open and not reserved."""
    get_active_kitchen(session, kitchen_id)
    granularity = granularity or settings.slot_granularity_minutes

    windows = resolve_open_windows(session, kitchen_id, day)
    candidates = discretize(windows, granularity)
    reservations = get_active_reservations(session, kitchen_id, day)

    return [format_minutes(s) for s in filter_reserved(candidates, granularity, reservations)]


def slot_board(
    session: Session,
    kitchen_id: int,
    day: date,
    granularity: Optional[int] = None,
) -> List[Dict]:
    """Every candidate slot with the reservation holding it, if any."""
    get_active_kitchen(session, kitchen_id)
    granularity = granularity or settings.slot_granularity_minutes

    candidates = discretize(resolve_open_windows(session, kitchen_id, day), granularity)
    reservations = get_active_reservations(session, kitchen_id, day)

    board = []
    for slot in candidates:
        holder = occupying_reservation(slot, granularity, reservations)
        board.append(
            {
                "time": format_minutes(slot),
                "end": format_minutes(slot + granularity),
                "available": holder is None,
                "reservation_id": holder.id if holder else None,
            }
        )
    return board
