from typing import Optional
from sqlmodel import SQLModel, Field


class Location(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    name: str

    # IANA zone, operating hours are facility-local
    timezone: Optional[str] = None

    # None = use settings.default_minimum_booking_window_hours
    minimum_booking_window_hours: Optional[int] = None

    # chefs cannot cancel within this many hours of the start
    cancellation_policy_hours: int = 24

    # bookings made through the chef channel start confirmed instead of pending
    auto_confirm_reservations: bool = False


class Kitchen(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    location_id: int = Field(foreign_key="location.id", index=True)

    name: str
    is_active: bool = Field(default=True, index=True)
