"""
Idempotent mutation of date override segments.

Upsert rules for a requested (kitchen, date, is_open, start, end):
- an identical row exists: nothing is written;
- rows of the same kind overlap the requested range: the first
  one is rewritten in place with the requested range and the others are
  removed, so retries and revisions never pile up rows;
- otherwise a new row is inserted.

Every change is checked against active reservations before it is
written, using the windows the day would have afterwards.
"""
import logging
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import List, Optional

from sqlmodel import Session, select

from kitchen_booking.core.errors import NotFoundError, ValidationError
from kitchen_booking.core.intervals import overlaps
from kitchen_booking.models.date_override import DateOverride
from kitchen_booking.services import conflict_guard, temporal
from kitchen_booking.services.availability import (
    compose_windows,
    day_of_week,
    get_date_overrides,
    get_weekly_rule,
    override_segment,
    validate_range,
)
from kitchen_booking.services.kitchens import get_kitchen, kitchen_timezone

logger = logging.getLogger(__name__)

CREATED = "created"
REPLACED = "replaced"
UNCHANGED = "unchanged"


@dataclass
class UpsertResult:
    override: DateOverride
    outcome: str


def validate_segment(is_open: bool, start: Optional[time], end: Optional[time]) -> None:
    if (start is None) != (end is None):
        raise ValidationError("start_time and end_time must be given together")

    if start is None:
        if is_open:
            raise ValidationError("An open segment needs start_time and end_time")
        return

    validate_range(start, end)


def _same_range(row: DateOverride, start: Optional[time], end: Optional[time]) -> bool:
    return row.start_time == start and row.end_time == end


def _overlapping(row: DateOverride, candidate: DateOverride) -> bool:
    a, b = override_segment(row), override_segment(candidate)
    return overlaps(a.start, a.end, b.start, b.end)


def _action(is_open: bool) -> str:
    return "reopen hours" if is_open else "block"


def list_date_overrides(
    session: Session,
    kitchen_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[DateOverride]:
    kitchen = get_kitchen(session, kitchen_id)
    if start_date is None:
        start_date = temporal.now_in_timezone(kitchen_timezone(session, kitchen)).date()
    if end_date is None:
        end_date = start_date + timedelta(days=365)

    return list(
        session.exec(
            select(DateOverride)
            .where(
                DateOverride.kitchen_id == kitchen_id,
                DateOverride.override_date >= start_date,
                DateOverride.override_date <= end_date,
            )
            .order_by(DateOverride.override_date, DateOverride.start_time)
        ).all()
    )


def upsert_date_override(
    session: Session,
    kitchen_id: int,
    day: date,
    is_open: bool,
    start: Optional[time] = None,
    end: Optional[time] = None,
    reason: Optional[str] = None,
) -> UpsertResult:
    validate_segment(is_open, start, end)
    get_kitchen(session, kitchen_id, lock=True)

    rows = get_date_overrides(session, kitchen_id, day)
    same_kind = [r for r in rows if r.is_open == is_open]

    for row in same_kind:
        if _same_range(row, start, end):
            if reason is not None and reason != row.reason:
                row.reason = reason
                row.updated_at = temporal.utc_now()
                session.add(row)
                session.commit()
                session.refresh(row)
            logger.info("Override unchanged: kitchen %s %s #%s", kitchen_id, day, row.id)
            return UpsertResult(row, UNCHANGED)

    requested = DateOverride(
        kitchen_id=kitchen_id,
        override_date=day,
        is_open=is_open,
        start_time=start,
        end_time=end,
        reason=reason,
    )
    targets = [r for r in same_kind if _overlapping(r, requested)]
    target_ids = {r.id for r in targets}
    remaining = [r for r in rows if r.id not in target_ids]

    rule = get_weekly_rule(session, kitchen_id, day_of_week(day))
    conflict_guard.guard_window_change(
        session,
        kitchen_id,
        day,
        compose_windows(rule, rows),
        compose_windows(rule, remaining + [requested]),
        action=_action(is_open),
    )

    if not targets:
        session.add(requested)
        session.commit()
        session.refresh(requested)
        logger.info(
            "Override created: kitchen %s %s open=%s %s-%s", kitchen_id, day, is_open, start, end
        )
        return UpsertResult(requested, CREATED)

    keep, *duplicates = targets
    keep.start_time = start
    keep.end_time = end
    if reason is not None:
        keep.reason = reason
    keep.updated_at = temporal.utc_now()
    session.add(keep)
    for row in duplicates:
        session.delete(row)
    session.commit()
    session.refresh(keep)
    logger.info(
        "Override replaced: kitchen %s %s #%s -> %s-%s (%d merged)",
        kitchen_id, day, keep.id, start, end, len(duplicates),
    )
    return UpsertResult(keep, REPLACED)


def update_date_override(
    session: Session,
    override_id: int,
    start: Optional[time],
    end: Optional[time],
    reason: Optional[str] = None,
) -> DateOverride:
    """Edit one row's range by id.

    Same-kind rows the new range overlaps are folded into one row, as an
    upsert would. An identical twin is kept in preference to the edited row.
    """
    row = session.get(DateOverride, override_id)
    if not row:
        raise NotFoundError(f"Date override {override_id} not found")

    validate_segment(row.is_open, start, end)
    get_kitchen(session, row.kitchen_id, lock=True)

    rows = get_date_overrides(session, row.kitchen_id, row.override_date)
    edited = DateOverride(
        kitchen_id=row.kitchen_id,
        override_date=row.override_date,
        is_open=row.is_open,
        start_time=start,
        end_time=end,
    )
    others = [r for r in rows if r.id != row.id]
    siblings = [r for r in others if r.is_open == row.is_open and _overlapping(r, edited)]
    sibling_ids = {r.id for r in siblings}
    untouched = [r for r in others if r.id not in sibling_ids]

    rule = get_weekly_rule(session, row.kitchen_id, day_of_week(row.override_date))
    conflict_guard.guard_window_change(
        session,
        row.kitchen_id,
        row.override_date,
        compose_windows(rule, rows),
        compose_windows(rule, untouched + [edited]),
        action=_action(row.is_open),
    )

    twin = next((r for r in siblings if _same_range(r, start, end)), None)
    keep = twin or row
    merged = [r for r in [row] + siblings if r is not keep]

    keep.start_time = start
    keep.end_time = end
    if reason is not None:
        keep.reason = reason
    keep.updated_at = temporal.utc_now()
    session.add(keep)
    for r in merged:
        session.delete(r)
    session.commit()
    session.refresh(keep)
    logger.info(
        "Override updated: #%s -> #%s %s-%s (%d merged)", override_id, keep.id, start, end, len(merged)
    )
    return keep


def delete_date_override(session: Session, override_id: int) -> None:
    """Remove a row; only removing an open base can take hours away."""
    row = session.get(DateOverride, override_id)
    if not row:
        raise NotFoundError(f"Date override {override_id} not found")

    if row.is_open:
        get_kitchen(session, row.kitchen_id, lock=True)
        rows = get_date_overrides(session, row.kitchen_id, row.override_date)
        rule = get_weekly_rule(session, row.kitchen_id, day_of_week(row.override_date))
        conflict_guard.guard_window_change(
            session,
            row.kitchen_id,
            row.override_date,
            compose_windows(rule, rows),
            compose_windows(rule, [r for r in rows if r.id != row.id]),
            action="remove open hours",
        )

    kitchen_id, day = row.kitchen_id, row.override_date
    session.delete(row)
    session.commit()
    logger.info("Override deleted: #%s (kitchen %s %s)", override_id, kitchen_id, day)
