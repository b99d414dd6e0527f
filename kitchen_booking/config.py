"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to the project root (parent of kitchen_booking/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./kitchen_booking.db"
    sql_echo: bool = False

    # candidate slot length in minutes
    slot_granularity_minutes: int = 30
    # zone used when a location has none (or an unknown one)
    default_timezone: str = "America/St_Johns"
    default_minimum_booking_window_hours: int = 0

    # tokens are issued by the identity service; we only verify them
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=_env_path, extra="ignore")

    @field_validator("slot_granularity_minutes")
    @classmethod
    def check_granularity(cls, v: int) -> int:
        if v < 5 or v > 240:
            raise ValueError("slot_granularity_minutes must be between 5 and 240")
        return v

    @field_validator("default_timezone", "log_level", mode="after")
    @classmethod
    def strip(cls, v: str) -> str:
        return (v or "").strip()


settings = Settings()
