from enum import Enum
from typing import Optional
from datetime import date, datetime, time, timezone
from sqlmodel import SQLModel, Field


class ReservationStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"


# statuses that count against availability
ACTIVE_STATUSES = (ReservationStatus.pending, ReservationStatus.confirmed)


class Reservation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    kitchen_id: int = Field(foreign_key="kitchen.id", index=True)
    chef_id: int = Field(index=True)

    # local wall-clock, the kitchen's timezone is applied only when classifying
    booking_date: date = Field(index=True)
    start_time: time
    end_time: time

    status: ReservationStatus = Field(default=ReservationStatus.pending, index=True)

    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    cancelled_at: Optional[datetime] = Field(default=None)
    cancelled_by: Optional[str] = None
    cancel_reason: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class ReservationCreate(SQLModel):
    kitchen_id: int
    booking_date: date
    start_time: time
    end_time: time
    notes: Optional[str] = None
