import logging
from datetime import time
from typing import List, Optional

from sqlmodel import Session, select

from kitchen_booking.core.errors import ValidationError
from kitchen_booking.models.weekly_availability import WeeklyAvailabilityRule
from kitchen_booking.services import conflict_guard
from kitchen_booking.services.availability import get_weekly_rule, validate_range
from kitchen_booking.services.kitchens import get_kitchen, kitchen_timezone

logger = logging.getLogger(__name__)


def list_weekly_rules(session: Session, kitchen_id: int) -> List[WeeklyAvailabilityRule]:
    get_kitchen(session, kitchen_id)
    return list(
        session.exec(
            select(WeeklyAvailabilityRule)
            .where(WeeklyAvailabilityRule.kitchen_id == kitchen_id)
            .order_by(WeeklyAvailabilityRule.day_of_week)
        ).all()
    )


def validate_weekly_rule(day_of_week: int, is_open: bool, open_time: Optional[time], close_time: Optional[time]) -> None:
    if day_of_week < 0 or day_of_week > 6:
        raise ValidationError("day_of_week must be 0..6 (0=Sunday)")

    if is_open:
        if open_time is None or close_time is None:
            raise ValidationError("open_time and close_time are required when is_open=true")

        validate_range(open_time, close_time, "open_time", "close_time")


def upsert_weekly_rule(
    session: Session,
    kitchen_id: int,
    day_of_week: int,
    is_open: bool,
    open_time: Optional[time] = None,
    close_time: Optional[time] = None,
) -> WeeklyAvailabilityRule:
    """Create or replace the template for one weekday.

    Closing or shrinking the day is rejected while upcoming reservations
    on that weekday sit in the hours being removed.
    """
    validate_weekly_rule(day_of_week, is_open, open_time, close_time)
    if not is_open:
        open_time = close_time = None

    kitchen = get_kitchen(session, kitchen_id, lock=True)
    existing = get_weekly_rule(session, kitchen_id, day_of_week)

    proposed = WeeklyAvailabilityRule(
        kitchen_id=kitchen_id,
        day_of_week=day_of_week,
        is_open=is_open,
        open_time=open_time,
        close_time=close_time,
    )

    conflict_guard.guard_weekly_change(
        session, kitchen_id, day_of_week, existing, proposed, kitchen_timezone(session, kitchen)
    )

    if existing:
        existing.is_open = is_open
        existing.open_time = open_time
        existing.close_time = close_time
        session.add(existing)
        session.commit()
        session.refresh(existing)
        logger.info("Weekly rule updated: kitchen %s day %s open=%s", kitchen_id, day_of_week, is_open)
        return existing

    session.add(proposed)
    session.commit()
    session.refresh(proposed)
    logger.info("Weekly rule created: kitchen %s day %s open=%s", kitchen_id, day_of_week, is_open)
    return proposed
