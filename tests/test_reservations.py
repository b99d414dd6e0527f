from datetime import date, time

import pytest
from sqlalchemy.exc import IntegrityError

from kitchen_booking.core.errors import (
    BookingWindowError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PastTimeError,
    ValidationError,
)
from kitchen_booking.models.reservation import Reservation, ReservationStatus
from kitchen_booking.services import reservations, weekly_rules
from kitchen_booking.services.slots import resolve_available_slots
from kitchen_booking.services.temporal import BookingPhase

from conftest import CHEF_ID, MONDAY, OTHER_CHEF_ID


def book(session, kitchen, start, end, day=MONDAY, chef_id=CHEF_ID, **kwargs):
    return reservations.create_reservation(session, kitchen.id, chef_id, day, start, end, **kwargs)


def test_create_defaults_to_pending(session, kitchen, monday_open):
    reservation = book(session, kitchen, time(10, 0), time(11, 0), notes="Pastry prep")

    assert reservation.id is not None
    assert reservation.status == ReservationStatus.pending
    assert reservation.notes == "Pastry prep"


def test_initial_status_is_a_policy_input(session, kitchen, monday_open):
    reservation = book(session, kitchen, time(10, 0), time(11, 0), initial_status=ReservationStatus.confirmed)
    assert reservation.status == ReservationStatus.confirmed


def test_location_can_auto_confirm(session, kitchen, location, monday_open):
    location.auto_confirm_reservations = True
    session.add(location)
    session.commit()

    reservation = book(session, kitchen, time(10, 0), time(11, 0))

    assert reservation.status == ReservationStatus.confirmed


def test_cannot_create_cancelled(session, kitchen, monday_open):
    with pytest.raises(ValidationError):
        book(session, kitchen, time(10, 0), time(11, 0), initial_status=ReservationStatus.cancelled)


def test_end_must_follow_start(session):
    with pytest.raises(ValidationError):
        reservations.create_reservation(session, 999, CHEF_ID, MONDAY, time(11, 0), time(11, 0))


def test_overlapping_request_is_taken(session, kitchen, monday_open):
    first = book(session, kitchen, time(10, 0), time(11, 0))

    with pytest.raises(ConflictError) as excinfo:
        book(session, kitchen, time(10, 30), time(11, 30), chef_id=OTHER_CHEF_ID)

    assert [r.id for r in excinfo.value.reservations] == [first.id]


def test_back_to_back_is_fine(session, kitchen, monday_open):
    book(session, kitchen, time(10, 0), time(11, 0))
    book(session, kitchen, time(11, 0), time(12, 0), chef_id=OTHER_CHEF_ID)


def test_cancelled_slot_can_be_rebooked(session, kitchen, monday_open):
    first = book(session, kitchen, time(10, 0), time(11, 0))
    reservations.cancel_reservation(session, first.id, cancelled_by="manager", enforce_policy=False)

    second = book(session, kitchen, time(10, 0), time(11, 0), chef_id=OTHER_CHEF_ID)

    assert second.status == ReservationStatus.pending


def test_outside_open_hours(session, kitchen, monday_open):
    with pytest.raises(ValidationError):
        book(session, kitchen, time(16, 30), time(17, 30))


def test_must_follow_slot_grid(session, kitchen, monday_open):
    with pytest.raises(ValidationError):
        book(session, kitchen, time(10, 15), time(11, 0))


def test_past_start_is_rejected(session, kitchen):
    # frozen clock: 08:30 on Sunday 2026-03-01 in St. John's
    with pytest.raises(PastTimeError):
        book(session, kitchen, time(8, 0), time(9, 0), day=date(2026, 3, 1))


def test_minimum_booking_window(session, kitchen, location, monday_open):
    location.minimum_booking_window_hours = 48
    session.add(location)
    session.commit()

    with pytest.raises(BookingWindowError):
        book(session, kitchen, time(10, 0), time(11, 0))


def test_inactive_kitchen(session, kitchen, monday_open):
    kitchen.is_active = False
    session.add(kitchen)
    session.commit()

    with pytest.raises(NotFoundError):
        book(session, kitchen, time(10, 0), time(11, 0))


def test_confirm_and_cancel_lifecycle(session, kitchen, monday_open):
    reservation = book(session, kitchen, time(10, 0), time(11, 0))

    confirmed = reservations.confirm_reservation(session, reservation.id)
    assert confirmed.status == ReservationStatus.confirmed
    assert reservations.confirm_reservation(session, reservation.id).status == ReservationStatus.confirmed

    cancelled = reservations.cancel_reservation(session, reservation.id, cancelled_by="chef", reason="Sick")
    assert cancelled.status == ReservationStatus.cancelled
    assert cancelled.cancelled_at is not None
    assert cancelled.cancel_reason == "Sick"

    with pytest.raises(InvalidTransitionError):
        reservations.confirm_reservation(session, reservation.id)

    again = reservations.cancel_reservation(session, reservation.id, cancelled_by="chef")
    assert again.cancel_reason == "Sick"


def test_cancellation_policy(session, kitchen, location, monday_open):
    location.cancellation_policy_hours = 48
    session.add(location)
    session.commit()
    reservation = book(session, kitchen, time(10, 0), time(11, 0))

    with pytest.raises(ValidationError):
        reservations.cancel_reservation(session, reservation.id, cancelled_by="chef")

    cancelled = reservations.cancel_reservation(session, reservation.id, cancelled_by="manager", enforce_policy=False)
    assert cancelled.status == ReservationStatus.cancelled


def test_unknown_reservation(session):
    with pytest.raises(NotFoundError):
        reservations.confirm_reservation(session, 404)


def test_phase_uses_kitchen_zone(session, kitchen, monday_open):
    reservation = book(session, kitchen, time(10, 0), time(11, 0))
    assert reservations.reservation_phase(session, reservation) == BookingPhase.UPCOMING


def test_list_filters(session, kitchen, monday_open):
    book(session, kitchen, time(10, 0), time(11, 0))
    book(session, kitchen, time(12, 0), time(13, 0), chef_id=OTHER_CHEF_ID)

    assert len(reservations.list_reservations(session, kitchen_id=kitchen.id)) == 2
    assert len(reservations.list_reservations(session, chef_id=CHEF_ID)) == 1
    assert reservations.list_reservations(session, booking_date=date(2026, 3, 3)) == []


def test_booking_reduces_slots(session, kitchen, monday_open):
    book(session, kitchen, time(10, 0), time(11, 0), initial_status=ReservationStatus.confirmed)

    slots = resolve_available_slots(session, kitchen.id, MONDAY)

    assert len(slots) == 14
    assert "10:00" not in slots and "10:30" not in slots


def test_storage_rejects_overlapping_active_rows(session, kitchen):
    session.add(
        Reservation(kitchen_id=kitchen.id, chef_id=CHEF_ID, booking_date=MONDAY, start_time=time(10, 0), end_time=time(11, 0))
    )
    session.commit()

    session.add(
        Reservation(
            kitchen_id=kitchen.id, chef_id=OTHER_CHEF_ID, booking_date=MONDAY, start_time=time(10, 30), end_time=time(11, 30)
        )
    )
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()

    session.add(
        Reservation(
            kitchen_id=kitchen.id,
            chef_id=OTHER_CHEF_ID,
            booking_date=MONDAY,
            start_time=time(10, 30),
            end_time=time(11, 30),
            status=ReservationStatus.cancelled,
        )
    )
    session.commit()


def test_backstop_surfaces_as_conflict(session, kitchen, monday_open, monkeypatch):
    """Simulate a concurrent writer slipping past the application check."""
    book(session, kitchen, time(10, 0), time(11, 0))
    monkeypatch.setattr(reservations.conflict_guard, "find_conflicts", lambda *args, **kwargs: [])

    with pytest.raises(ConflictError):
        book(session, kitchen, time(10, 0), time(11, 0), chef_id=OTHER_CHEF_ID)


def test_weekly_closure_blocked_by_booking(session, kitchen, monday_open):
    book(session, kitchen, time(10, 0), time(11, 0))

    with pytest.raises(ConflictError):
        weekly_rules.upsert_weekly_rule(session, kitchen.id, 1, is_open=False)

    session.refresh(monday_open)
    assert monday_open.is_open is True


def test_weekly_widening_needs_no_guard(session, kitchen, monday_open):
    book(session, kitchen, time(10, 0), time(11, 0))

    rule = weekly_rules.upsert_weekly_rule(session, kitchen.id, 1, True, time(8, 0), time(18, 0))

    assert rule.id == monday_open.id
    assert len(resolve_available_slots(session, kitchen.id, MONDAY)) == 18


def test_weekly_rule_validation(session, kitchen):
    with pytest.raises(ValidationError):
        weekly_rules.upsert_weekly_rule(session, kitchen.id, 7, is_open=False)
    with pytest.raises(ValidationError):
        weekly_rules.upsert_weekly_rule(session, kitchen.id, 1, True, time(12, 0), time(9, 0))
    with pytest.raises(ValidationError):
        weekly_rules.upsert_weekly_rule(session, kitchen.id, 1, True)


def test_timestamps_are_timezone_aware(session, kitchen, monday_open):
    draft = Reservation(
        kitchen_id=kitchen.id, chef_id=CHEF_ID, booking_date=MONDAY, start_time=time(10, 0), end_time=time(11, 0)
    )
    assert draft.created_at.tzinfo is not None

    reservation = book(session, kitchen, time(10, 0), time(11, 0))

    cancelled = reservations.cancel_reservation(session, reservation.id, cancelled_by="manager", enforce_policy=False)

    assert cancelled.cancelled_at is not None
