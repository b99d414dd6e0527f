from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from kitchen_booking.database import get_session
from kitchen_booking.models.reservation import Reservation, ReservationCreate
from kitchen_booking.core.security import (
    ROLE_CHEF,
    Identity,
    get_current_chef,
    get_current_identity,
    get_current_manager,
)
from kitchen_booking.services import reservations


router = APIRouter(prefix="/reservations", tags=["reservations"])


def _with_phase(session: Session, reservation: Reservation) -> dict:
    data = reservation.model_dump()
    data["phase"] = reservations.reservation_phase(session, reservation).value
    return data


# =========================
# CREATE RESERVATION (CHEF)
# =========================
@router.post("/", status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreate,
    session: Session = Depends(get_session),
    current_chef: Identity = Depends(get_current_chef),
):
    # chef comes from the token and the starting status from the location policy, never from the body
    return reservations.create_reservation(
        session,
        kitchen_id=payload.kitchen_id,
        chef_id=current_chef.user_id,
        booking_date=payload.booking_date,
        start=payload.start_time,
        end=payload.end_time,
        notes=payload.notes,
    )


# =========================
# LIST RESERVATIONS
# - chef: own only
# - manager: by kitchen / day
# =========================
@router.get("/")
def list_reservations(
    kitchen_id: Optional[int] = None,
    day: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: Identity = Depends(get_current_identity),
):
    if current_user.role == ROLE_CHEF:
        rows = reservations.list_reservations(
            session, kitchen_id=kitchen_id, chef_id=current_user.user_id, booking_date=day
        )
    else:
        rows = reservations.list_reservations(session, kitchen_id=kitchen_id, booking_date=day)

    return [_with_phase(session, r) for r in rows]


# =========================
# PHASE (past / active / upcoming)
# =========================
@router.get("/{reservation_id}/phase")
def get_reservation_phase(
    reservation_id: int,
    session: Session = Depends(get_session),
    current_user: Identity = Depends(get_current_identity),
):
    reservation = reservations.get_reservation(session, reservation_id)
    if current_user.role == ROLE_CHEF and reservation.chef_id != current_user.user_id:
        raise HTTPException(status_code=403, detail="Not allowed")

    return {
        "reservation_id": reservation.id,
        "phase": reservations.reservation_phase(session, reservation).value,
    }


# =========================
# CONFIRM (MANAGER)
# =========================
@router.patch("/{reservation_id}/confirm")
def confirm_reservation(
    reservation_id: int,
    session: Session = Depends(get_session),
    current_manager: Identity = Depends(get_current_manager),
):
    return reservations.confirm_reservation(session, reservation_id)


# =========================
# CANCEL
# - chef: own only, subject to the location's notice period
# - manager: always
# =========================
@router.patch("/{reservation_id}/cancel")
def cancel_reservation(
    reservation_id: int,
    reason: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: Identity = Depends(get_current_identity),
):
    reservation = reservations.get_reservation(session, reservation_id)

    is_chef_owner = current_user.role == ROLE_CHEF and reservation.chef_id == current_user.user_id
    is_manager = current_user.is_manager

    if not (is_chef_owner or is_manager):
        raise HTTPException(status_code=403, detail="Not allowed")

    return reservations.cancel_reservation(
        session,
        reservation_id,
        cancelled_by=current_user.role,
        reason=reason,
        enforce_policy=is_chef_owner,
    )
