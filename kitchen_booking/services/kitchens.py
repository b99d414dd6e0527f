"""
Read access to the kitchen/location registry.
"""
import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlmodel import Session, select

from kitchen_booking.config import settings
from kitchen_booking.core.errors import NotFoundError
from kitchen_booking.models.kitchen import Kitchen, Location

logger = logging.getLogger(__name__)


def get_kitchen(session: Session, kitchen_id: int, *, lock: bool = False) -> Kitchen:
    """Load a kitchen, optionally taking a row lock for check-then-write paths."""
    stmt = select(Kitchen).where(Kitchen.id == kitchen_id)
    if lock:
        stmt = stmt.with_for_update()
    kitchen = session.exec(stmt).first()
    if not kitchen:
        raise NotFoundError(f"Kitchen {kitchen_id} not found")
    return kitchen


def get_active_kitchen(session: Session, kitchen_id: int, *, lock: bool = False) -> Kitchen:
    kitchen = get_kitchen(session, kitchen_id, lock=lock)
    if not kitchen.is_active:
        raise NotFoundError(f"Kitchen {kitchen_id} is not active")
    return kitchen


def get_location(session: Session, kitchen: Kitchen) -> Optional[Location]:
    return session.get(Location, kitchen.location_id)


def resolve_timezone(name: Optional[str]) -> str:
    """Return a usable IANA zone name, falling back to the configured default."""
    if name:
        try:
            ZoneInfo(name)
            return name
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, using %s", name, settings.default_timezone)
    return settings.default_timezone


def kitchen_timezone(session: Session, kitchen: Kitchen) -> str:
    location = get_location(session, kitchen)
    return resolve_timezone(location.timezone if location else None)


def minimum_booking_window_hours(session: Session, kitchen: Kitchen) -> int:
    location = get_location(session, kitchen)
    if location and location.minimum_booking_window_hours is not None:
        return location.minimum_booking_window_hours
    return settings.default_minimum_booking_window_hours


def cancellation_policy_hours(session: Session, kitchen: Kitchen) -> int:
    location = get_location(session, kitchen)
    return location.cancellation_policy_hours if location else 24


def auto_confirm_reservations(session: Session, kitchen: Kitchen) -> bool:
    location = get_location(session, kitchen)
    return bool(location and location.auto_confirm_reservations)
