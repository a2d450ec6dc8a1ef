from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./lgl_sync.db"
    redis_url: str = "redis://localhost:6379/0"

    # Site identity (environment detection + email links)
    site_url: str = "http://localhost:8000"
    site_host: str | None = None
    server_addr: str | None = None
    organization_name: str = "Upstate International"
    admin_email: str = ""

    # Internal API security
    admin_api_key: str = ""

    # LGL API
    lgl_api_url: str = "https://api.littlegreenlight.com/api/v1"
    lgl_api_key: str = ""
    lgl_request_timeout_seconds: float = 15.0
    lgl_gift_type_id: int | None = None
    lgl_default_fund: str = "General Fund"
    lgl_category_funds: dict[str, str] = Field(default_factory=dict)
    lgl_fund_ids: dict[str, int] = Field(default_factory=dict)
    lgl_payment_types: dict[str, str] = Field(default_factory=dict)

    # Membership renewals
    renewal_reminders_enabled: bool = True
    renewal_grace_period_days: int = 30
    renewal_timezone: str = "America/New_York"
    renewal_batch_size: int = 100
    renewal_scheduler_enabled: bool = False
    renewal_scheduler_interval_seconds: int = 24 * 60 * 60
    renewal_email_subjects: dict[int, str] = Field(default_factory=dict)
    renewal_email_bodies: dict[int, str] = Field(default_factory=dict)

    # Email blocking
    force_email_blocking: bool = False
    email_whitelist: list[str] = Field(default_factory=list)
    email_blocking_log_capacity: int = 50
    email_blocking_default_pause_seconds: int = 300

    @field_validator("email_whitelist", mode="before")
    @classmethod
    def _parse_whitelist(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, (list, tuple, set)):
            return [str(item).strip() for item in value if str(item).strip()]
        return []

    @field_validator("renewal_grace_period_days", "email_blocking_log_capacity")
    @classmethod
    def _require_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
