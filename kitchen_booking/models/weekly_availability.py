from typing import Optional
from datetime import time
from sqlmodel import SQLModel, Field, UniqueConstraint


class WeeklyAvailabilityRule(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("kitchen_id", "day_of_week", name="uq_weekly_rule_kitchen_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    kitchen_id: int = Field(foreign_key="kitchen.id", index=True)

    # 0=Sunday ... 6=Saturday
    day_of_week: int = Field(index=True)

    is_open: bool = True

    open_time: Optional[time] = None
    close_time: Optional[time] = None


class WeeklyRuleUpdate(SQLModel):
    is_open: bool = True
    open_time: Optional[time] = None
    close_time: Optional[time] = None
