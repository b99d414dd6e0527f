from datetime import date
from typing import Dict

from fastapi import APIRouter, Depends
from sqlmodel import Session

from kitchen_booking.config import settings
from kitchen_booking.database import get_session
from kitchen_booking.core.security import Identity, get_current_manager
from kitchen_booking.services import slots
from kitchen_booking.services.kitchens import get_kitchen, kitchen_timezone

router = APIRouter(prefix="/kitchens", tags=["availability"])


# =========================
# AVAILABLE SLOTS (kitchen + day)
# GET /kitchens/1/slots?day=2026-02-16
# =========================
@router.get("/{kitchen_id}/slots")
def get_available_slots(
    kitchen_id: int,
    day: date,
    session: Session = Depends(get_session),
) -> Dict:
    available = slots.resolve_available_slots(session, kitchen_id, day)
    return {
        "kitchen_id": kitchen_id,
        "day": day.isoformat(),
        "timezone": kitchen_timezone(session, get_kitchen(session, kitchen_id)),
        "granularity_minutes": settings.slot_granularity_minutes,
        "slots": available,
    }


# =========================
# SLOT BOARD (manager calendar)
# =========================
@router.get("/{kitchen_id}/slot-board")
def get_slot_board(
    kitchen_id: int,
    day: date,
    session: Session = Depends(get_session),
    current_manager: Identity = Depends(get_current_manager),
) -> Dict:
    return {
        "kitchen_id": kitchen_id,
        "day": day.isoformat(),
        "granularity_minutes": settings.slot_granularity_minutes,
        "slots": slots.slot_board(session, kitchen_id, day),
    }
