"""
Resolution of a kitchen's open windows for one calendar date.

Sources, in order:
- date override segments for the date: OPEN rows form the base (replacing
  the weekly template), BLOCK rows are carved out of whatever base applies;
- otherwise the weekly rule for the date's day of week.

A day with only BLOCK rows keeps the weekly template as its base, so a
partial block narrows the day and a whole-day block closes it.
"""
from datetime import date, time
from typing import List, Optional

from sqlmodel import Session, select

from kitchen_booking.core.errors import ValidationError
from kitchen_booking.core.intervals import (
    DAY_END,
    DAY_START,
    Interval,
    Segment,
    SegmentKind,
    apply_segments,
    to_minutes,
)
from kitchen_booking.models.date_override import DateOverride
from kitchen_booking.models.weekly_availability import WeeklyAvailabilityRule


def validate_range(
    start: time, end: time, start_field: str = "start_time", end_field: str = "end_time"
) -> None:
    """Ranges live inside one day; `time` has no 24:00, so 23:59 is the latest end."""
    if end == time(0):
        raise ValidationError(
            f"{end_field} 00:00 is not accepted: ranges cannot run to midnight, the latest {end_field} is 23:59"
        )
    if end <= start:
        raise ValidationError(f"{end_field} must be after {start_field}")


def day_of_week(day: date) -> int:
    """0=Sunday ... 6=Saturday."""
    return (day.weekday() + 1) % 7


def get_weekly_rule(session: Session, kitchen_id: int, dow: int) -> Optional[WeeklyAvailabilityRule]:
    return session.exec(
        select(WeeklyAvailabilityRule).where(
            WeeklyAvailabilityRule.kitchen_id == kitchen_id,
            WeeklyAvailabilityRule.day_of_week == dow,
        )
    ).first()


def get_date_overrides(session: Session, kitchen_id: int, day: date) -> List[DateOverride]:
    return list(
        session.exec(
            select(DateOverride)
            .where(
                DateOverride.kitchen_id == kitchen_id,
                DateOverride.override_date == day,
            )
            .order_by(DateOverride.id)
        ).all()
    )


def weekly_window(rule: Optional[WeeklyAvailabilityRule]) -> List[Interval]:
    if not rule or not rule.is_open or not rule.open_time or not rule.close_time:
        return []
    start, end = to_minutes(rule.open_time), to_minutes(rule.close_time)
    return [(start, end)] if end > start else []


def override_segment(row: DateOverride) -> Segment:
    kind = SegmentKind.OPEN if row.is_open else SegmentKind.BLOCK
    if row.start_time is None or row.end_time is None:
        # only blocks may omit their range: closed all day
        return Segment(kind, DAY_START, DAY_END)
    return Segment(kind, to_minutes(row.start_time), to_minutes(row.end_time))


def compose_windows(
    rule: Optional[WeeklyAvailabilityRule],
    overrides: List[DateOverride],
) -> List[Interval]:
    """Pure part of the resolution, shared by the resolver and the conflict guard."""
    segments = [override_segment(row) for row in overrides]

    if not any(s.kind == SegmentKind.OPEN for s in segments):
        segments.extend(Segment(SegmentKind.OPEN, s, e) for s, e in weekly_window(rule))

    return apply_segments(segments)


def resolve_open_windows(session: Session, kitchen_id: int, day: date) -> List[Interval]:
    """The day's usable open windows after carve-outs, sorted and disjoint."""
    overrides = get_date_overrides(session, kitchen_id, day)
    rule = get_weekly_rule(session, kitchen_id, day_of_week(day))
    return compose_windows(rule, overrides)
