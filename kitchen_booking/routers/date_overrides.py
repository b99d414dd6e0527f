from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from kitchen_booking.database import get_session
from kitchen_booking.models.date_override import DateOverrideUpdate, DateOverrideUpsert
from kitchen_booking.core.security import Identity, get_current_manager
from kitchen_booking.services import overrides

router = APIRouter(tags=["date-overrides"])


@router.get("/kitchens/{kitchen_id}/date-overrides")
def list_date_overrides(
    kitchen_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_manager: Identity = Depends(get_current_manager),
):
    return overrides.list_date_overrides(session, kitchen_id, start_date, end_date)


@router.put("/kitchens/{kitchen_id}/date-overrides")
def upsert_date_override(
    kitchen_id: int,
    payload: DateOverrideUpsert,
    session: Session = Depends(get_session),
    current_manager: Identity = Depends(get_current_manager),
):
    result = overrides.upsert_date_override(
        session,
        kitchen_id,
        payload.override_date,
        payload.is_open,
        payload.start_time,
        payload.end_time,
        payload.reason,
    )
    return {"outcome": result.outcome, "override": result.override}


@router.patch("/date-overrides/{override_id}")
def update_date_override(
    override_id: int,
    payload: DateOverrideUpdate,
    session: Session = Depends(get_session),
    current_manager: Identity = Depends(get_current_manager),
):
    return overrides.update_date_override(
        session, override_id, payload.start_time, payload.end_time, payload.reason
    )


@router.delete("/date-overrides/{override_id}")
def delete_date_override(
    override_id: int,
    session: Session = Depends(get_session),
    current_manager: Identity = Depends(get_current_manager),
):
    overrides.delete_date_override(session, override_id)
    return {"message": "Override removed"}
