"""
Reservation creation and lifecycle.

Creation order: past-time gate, minimum booking window, open-hours fit,
overlap check, then the insert. The insert itself is backed by the
storage overlap rule, so two concurrent requests for the same range
cannot both commit.
"""
import logging
from datetime import date, datetime, time
from typing import Dict, List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from kitchen_booking.config import settings
from kitchen_booking.core.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from kitchen_booking.core.intervals import contains, to_minutes
from kitchen_booking.models.reservation import ACTIVE_STATUSES, Reservation, ReservationStatus
from kitchen_booking.services import conflict_guard, temporal
from kitchen_booking.services.availability import resolve_open_windows, validate_range
from kitchen_booking.services.slots import discretize
from kitchen_booking.services.kitchens import (
    auto_confirm_reservations,
    cancellation_policy_hours,
    get_active_kitchen,
    get_kitchen,
    kitchen_timezone,
    minimum_booking_window_hours,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[ReservationStatus, Set[ReservationStatus]] = {
    ReservationStatus.pending: {ReservationStatus.confirmed, ReservationStatus.cancelled},
    ReservationStatus.confirmed: {ReservationStatus.cancelled},
    ReservationStatus.cancelled: set(),
}


def _check_fits_open_hours(windows, start: int, end: int, granularity: int) -> None:
    if not contains(windows, start, end):
        raise ValidationError("Requested time is outside the kitchen's available hours")
    if start not in discretize(windows, granularity) or (end - start) % granularity:
        raise ValidationError(f"Reservations must follow the {granularity}-minute slot grid")


def _initial_status(session: Session, kitchen) -> ReservationStatus:
    if auto_confirm_reservations(session, kitchen):
        return ReservationStatus.confirmed
    return ReservationStatus.pending


def create_reservation(
    session: Session,
    kitchen_id: int,
    chef_id: int,
    booking_date: date,
    start: time,
    end: time,
    notes: Optional[str] = None,
    initial_status: Optional[ReservationStatus] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    validate_range(start, end)
    if initial_status is not None and initial_status not in ACTIVE_STATUSES:
        raise ValidationError("initial_status must be pending or confirmed")

    kitchen = get_active_kitchen(session, kitchen_id, lock=True)
    if initial_status is None:
        initial_status = _initial_status(session, kitchen)

    tz_name = kitchen_timezone(session, kitchen)
    temporal.ensure_bookable_start(
        booking_date, start, tz_name, minimum_booking_window_hours(session, kitchen), now
    )

    s, e = to_minutes(start), to_minutes(end)
    windows = resolve_open_windows(session, kitchen_id, booking_date)
    _check_fits_open_hours(windows, s, e, settings.slot_granularity_minutes)

    taken = conflict_guard.find_conflicts(session, kitchen_id, booking_date, [(s, e)])
    if taken:
        logger.warning(
            "Rejected reservation kitchen %s %s %s-%s: already taken", kitchen_id, booking_date, start, end
        )
        raise ConflictError("Requested time is already taken", taken)

    reservation = Reservation(
        kitchen_id=kitchen_id,
        chef_id=chef_id,
        booking_date=booking_date,
        start_time=start,
        end_time=end,
        notes=notes,
        status=initial_status,
    )
    session.add(reservation)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.warning(
            "Overlap rule rejected reservation kitchen %s %s %s-%s", kitchen_id, booking_date, start, end
        )
        raise ConflictError(
            "Requested time is already taken",
            conflict_guard.find_conflicts(session, kitchen_id, booking_date, [(s, e)]),
        ) from exc

    session.refresh(reservation)
    logger.info(
        "Reservation #%s created: kitchen %s chef %s %s %s-%s (%s)",
        reservation.id, kitchen_id, chef_id, booking_date, start, end, initial_status.value,
    )
    return reservation


def get_reservation(session: Session, reservation_id: int) -> Reservation:
    reservation = session.get(Reservation, reservation_id)
    if not reservation:
        raise NotFoundError(f"Reservation {reservation_id} not found")
    return reservation


def _transition(reservation: Reservation, target: ReservationStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[reservation.status]:
        raise InvalidTransitionError(
            f"Cannot move reservation from {reservation.status.value} to {target.value}"
        )
    reservation.status = target


def confirm_reservation(session: Session, reservation_id: int) -> Reservation:
    reservation = get_reservation(session, reservation_id)
    if reservation.status == ReservationStatus.confirmed:
        return reservation

    _transition(reservation, ReservationStatus.confirmed)
    session.add(reservation)
    session.commit()
    session.refresh(reservation)
    logger.info("Reservation #%s confirmed", reservation.id)
    return reservation


def cancel_reservation(
    session: Session,
    reservation_id: int,
    cancelled_by: str,
    reason: Optional[str] = None,
    enforce_policy: bool = True,
    now: Optional[datetime] = None,
) -> Reservation:
    """Cancel; with `enforce_policy` the location's notice period applies."""
    reservation = get_reservation(session, reservation_id)
    if reservation.status == ReservationStatus.cancelled:
        return reservation

    if enforce_policy:
        kitchen = get_kitchen(session, reservation.kitchen_id)
        policy_hours = cancellation_policy_hours(session, kitchen)
        remaining = temporal.hours_until(
            reservation.booking_date,
            reservation.start_time,
            kitchen_timezone(session, kitchen),
            now,
        )
        if remaining < policy_hours:
            raise ValidationError(
                f"Bookings cannot be cancelled within {policy_hours} hours of the scheduled time"
            )

    _transition(reservation, ReservationStatus.cancelled)
    reservation.cancelled_at = temporal.utc_now()
    reservation.cancelled_by = cancelled_by
    reservation.cancel_reason = reason
    session.add(reservation)
    session.commit()
    session.refresh(reservation)
    logger.info("Reservation #%s cancelled by %s", reservation.id, cancelled_by)
    return reservation


def list_reservations(
    session: Session,
    kitchen_id: Optional[int] = None,
    chef_id: Optional[int] = None,
    booking_date: Optional[date] = None,
) -> List[Reservation]:
    stmt = select(Reservation)
    if kitchen_id is not None:
        stmt = stmt.where(Reservation.kitchen_id == kitchen_id)
    if chef_id is not None:
        stmt = stmt.where(Reservation.chef_id == chef_id)
    if booking_date is not None:
        stmt = stmt.where(Reservation.booking_date == booking_date)
    stmt = stmt.order_by(Reservation.booking_date, Reservation.start_time)
    return list(session.exec(stmt).all())


def reservation_phase(
    session: Session, reservation: Reservation, now: Optional[datetime] = None
) -> temporal.BookingPhase:
    kitchen = get_kitchen(session, reservation.kitchen_id)
    return temporal.classify(reservation, kitchen_timezone(session, kitchen), now)
