from fastapi import APIRouter, Depends
from sqlmodel import Session

from kitchen_booking.database import get_session
from kitchen_booking.models.weekly_availability import WeeklyRuleUpdate
from kitchen_booking.core.security import Identity, get_current_manager
from kitchen_booking.services import weekly_rules

router = APIRouter(prefix="/kitchens", tags=["weekly-availability"])


@router.get("/{kitchen_id}/weekly-availability")
def list_weekly_availability(
    kitchen_id: int,
    session: Session = Depends(get_session),
    current_manager: Identity = Depends(get_current_manager),
):
    return weekly_rules.list_weekly_rules(session, kitchen_id)


@router.put("/{kitchen_id}/weekly-availability/{day_of_week}")
def upsert_weekly_availability(
    kitchen_id: int,
    day_of_week: int,
    payload: WeeklyRuleUpdate,
    session: Session = Depends(get_session),
    current_manager: Identity = Depends(get_current_manager),
):
    """
    day_of_week: 0=Sunday ... 6=Saturday
    """
    return weekly_rules.upsert_weekly_rule(
        session,
        kitchen_id,
        day_of_week,
        is_open=payload.is_open,
        open_time=payload.open_time,
        close_time=payload.close_time,
    )
