"""
Database engine, session dependency and the reservation overlap backstop.
"""
import logging

from sqlalchemy import DDL, event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from kitchen_booking.config import settings
from kitchen_booking.models import date_override, kitchen, reservation, weekly_availability  # noqa: F401
from kitchen_booking.models.reservation import Reservation

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "reservation_no_overlap"

# Two active reservations of the same kitchen may never overlap on [date, start, end).
_PG_EXTENSION = DDL("CREATE EXTENSION IF NOT EXISTS btree_gist")
_PG_EXCLUSION = DDL(
    f"ALTER TABLE reservation ADD CONSTRAINT {OVERLAP_CONSTRAINT} "
    "EXCLUDE USING gist ("
    "kitchen_id WITH =, "
    "tsrange(booking_date + start_time, booking_date + end_time, '[)') WITH &&"
    ") WHERE (status IN ('pending', 'confirmed'))"
)

_SQLITE_OVERLAP_WHERE = (
    "SELECT RAISE(ABORT, '{name}') WHERE EXISTS ("
    "SELECT 1 FROM reservation r "
    "WHERE r.kitchen_id = NEW.kitchen_id "
    "AND r.booking_date = NEW.booking_date "
    "AND r.status IN ('pending', 'confirmed') "
    "AND r.start_time < NEW.end_time "
    "AND NEW.start_time < r.end_time "
    "{extra});"
)
_SQLITE_INSERT_TRIGGER = DDL(
    f"CREATE TRIGGER IF NOT EXISTS {OVERLAP_CONSTRAINT}_insert "
    "BEFORE INSERT ON reservation "
    "WHEN NEW.status IN ('pending', 'confirmed') "
    "BEGIN "
    + _SQLITE_OVERLAP_WHERE.format(name=OVERLAP_CONSTRAINT, extra="")
    + " END"
)
_SQLITE_UPDATE_TRIGGER = DDL(
    f"CREATE TRIGGER IF NOT EXISTS {OVERLAP_CONSTRAINT}_update "
    "BEFORE UPDATE ON reservation "
    "WHEN NEW.status IN ('pending', 'confirmed') "
    "BEGIN "
    + _SQLITE_OVERLAP_WHERE.format(name=OVERLAP_CONSTRAINT, extra="AND r.id <> NEW.id")
    + " END"
)

_table = Reservation.__table__
event.listen(_table, "after_create", _PG_EXTENSION.execute_if(dialect="postgresql"))
event.listen(_table, "after_create", _PG_EXCLUSION.execute_if(dialect="postgresql"))
event.listen(_table, "after_create", _SQLITE_INSERT_TRIGGER.execute_if(dialect="sqlite"))
event.listen(_table, "after_create", _SQLITE_UPDATE_TRIGGER.execute_if(dialect="sqlite"))


def build_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, echo=settings.sql_echo, **kwargs)


engine = build_engine(settings.database_url)


def create_db_and_tables(bind: Engine = None) -> None:
    SQLModel.metadata.create_all(bind or engine)
    logger.info("Tables ready")


def get_session():
    with Session(engine) as session:
        yield session
