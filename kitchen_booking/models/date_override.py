from typing import Optional
from datetime import date, datetime, time, timezone
from sqlmodel import SQLModel, Field


class DateOverride(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    kitchen_id: int = Field(foreign_key="kitchen.id", index=True)
    override_date: date = Field(index=True)

    # True = base open window, False = block carved out of the day
    is_open: bool = Field(default=False)

    # both None on a block = closed all day
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    reason: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DateOverrideUpsert(SQLModel):
    override_date: date
    is_open: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None


class DateOverrideUpdate(SQLModel):
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None
