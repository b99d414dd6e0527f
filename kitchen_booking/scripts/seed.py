import logging
from datetime import time, timedelta

from sqlmodel import Session, select

from kitchen_booking.core.logging_config import setup_logging
from kitchen_booking.database import create_db_and_tables, engine
from kitchen_booking.models.kitchen import Kitchen, Location
from kitchen_booking.models.weekly_availability import WeeklyAvailabilityRule
from kitchen_booking.services import overrides, temporal

logger = logging.getLogger(__name__)

LOCATION_NAME = "Downtown Commissary"
KITCHEN_NAME = "Kitchen A"


def main():
    setup_logging()
    create_db_and_tables()

    with Session(engine) as session:
        # 1) location + kitchen (normally owned by the registry)
        location = session.exec(select(Location).where(Location.name == LOCATION_NAME)).first()
        if not location:
            location = Location(name=LOCATION_NAME, timezone="America/St_Johns", minimum_booking_window_hours=1)
            session.add(location)
            session.commit()
            session.refresh(location)

        kitchen = session.exec(
            select(Kitchen).where(Kitchen.location_id == location.id, Kitchen.name == KITCHEN_NAME)
        ).first()
        if not kitchen:
            kitchen = Kitchen(location_id=location.id, name=KITCHEN_NAME)
            session.add(kitchen)
            session.commit()
            session.refresh(kitchen)

        # 2) weekly template (Mon-Sat open, Sunday closed)
        defaults = {
            0: dict(is_open=False, open_time=None, close_time=None),
            1: dict(is_open=True, open_time=time(9, 0), close_time=time(17, 0)),
            2: dict(is_open=True, open_time=time(9, 0), close_time=time(17, 0)),
            3: dict(is_open=True, open_time=time(9, 0), close_time=time(17, 0)),
            4: dict(is_open=True, open_time=time(9, 0), close_time=time(17, 0)),
            5: dict(is_open=True, open_time=time(9, 0), close_time=time(17, 0)),
            6: dict(is_open=True, open_time=time(10, 0), close_time=time(14, 0)),
        }

        for day_of_week, cfg in defaults.items():
            row = session.exec(
                select(WeeklyAvailabilityRule).where(
                    WeeklyAvailabilityRule.kitchen_id == kitchen.id,
                    WeeklyAvailabilityRule.day_of_week == day_of_week,
                )
            ).first()

            if row:
                row.is_open = cfg["is_open"]
                row.open_time = cfg["open_time"]
                row.close_time = cfg["close_time"]
                session.add(row)
            else:
                session.add(WeeklyAvailabilityRule(kitchen_id=kitchen.id, day_of_week=day_of_week, **cfg))

        session.commit()

        # 3) sample block tomorrow 11:00-13:00 (upsert, safe to re-run)
        tomorrow = temporal.now_in_timezone(location.timezone).date() + timedelta(days=1)
        overrides.upsert_date_override(
            session, kitchen.id, tomorrow, False, time(11, 0), time(13, 0), reason="Deep clean"
        )

        logger.info("Seed done: kitchen %s (%s), block %s 11:00-13:00", kitchen.id, location.timezone, tomorrow)


if __name__ == "__main__":
    main()
