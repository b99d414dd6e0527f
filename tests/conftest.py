from datetime import date, datetime, time, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from kitchen_booking.core.security import ROLE_CHEF, ROLE_MANAGER, create_access_token
from kitchen_booking.database import create_db_and_tables, get_session
from kitchen_booking.main import app
from kitchen_booking.models.kitchen import Kitchen, Location
from kitchen_booking.models.reservation import Reservation, ReservationStatus
from kitchen_booking.models.weekly_availability import WeeklyAvailabilityRule
from kitchen_booking.services import temporal

# Sunday 2026-03-01 08:30 in St. John's (NST, UTC-3:30)
FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
MONDAY = date(2026, 3, 2)
NEXT_MONDAY = date(2026, 3, 9)

CHEF_ID = 7
OTHER_CHEF_ID = 8
MANAGER_ID = 100


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch):
    monkeypatch.setattr(temporal, "utc_now", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture(name="location")
def location_fixture(session):
    location = Location(name="Harbour Commissary", timezone="America/St_Johns")
    session.add(location)
    session.commit()
    session.refresh(location)
    return location


@pytest.fixture(name="kitchen")
def kitchen_fixture(session, location):
    kitchen = Kitchen(location_id=location.id, name="Kitchen A")
    session.add(kitchen)
    session.commit()
    session.refresh(kitchen)
    return kitchen


@pytest.fixture(name="monday_open")
def monday_open_fixture(session, kitchen):
    """Weekly rule: Mondays 09:00-17:00."""
    rule = WeeklyAvailabilityRule(
        kitchen_id=kitchen.id, day_of_week=1, is_open=True, open_time=time(9, 0), close_time=time(17, 0)
    )
    session.add(rule)
    session.commit()
    session.refresh(rule)
    return rule


@pytest.fixture(name="make_reservation")
def make_reservation_fixture(session, kitchen):
    """Insert a reservation row directly, bypassing the booking checks."""

    def _make(start, end, day=MONDAY, status=ReservationStatus.confirmed, chef_id=CHEF_ID):
        reservation = Reservation(
            kitchen_id=kitchen.id,
            chef_id=chef_id,
            booking_date=day,
            start_time=start,
            end_time=end,
            status=status,
        )
        session.add(reservation)
        session.commit()
        session.refresh(reservation)
        return reservation

    return _make


@pytest.fixture(name="client")
def client_fixture(engine):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def auth(role: str, user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture(name="chef_headers")
def chef_headers_fixture():
    return auth(ROLE_CHEF, CHEF_ID)


@pytest.fixture(name="other_chef_headers")
def other_chef_headers_fixture():
    return auth(ROLE_CHEF, OTHER_CHEF_ID)


@pytest.fixture(name="manager_headers")
def manager_headers_fixture():
    return auth(ROLE_MANAGER, MANAGER_ID)
