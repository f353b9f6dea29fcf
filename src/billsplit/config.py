from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BILLSPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    max_people: int = Field(50, ge=1)
    max_custom_amount_cents: int = Field(1_000_000, ge=0)
    max_name_length: int = Field(50, ge=1)
    max_customer_assignments: int = Field(20, ge=1)
    percentage_tolerance: Decimal = Field(Decimal("0.01"), ge=0)

    log_level: str = "INFO"
    log_json: bool = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
