from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server settings loaded from the environment (or a local ``.env``)."""

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./pos.db")
    database_echo: bool = False
    database_pool_size: int = 10
    database_max_overflow: int = 20
    sqlite_busy_timeout_seconds: float = 30.0

    # Settlement
    settlement_timeout_seconds: float = Field(default=10.0, gt=0)
    price_policy: Literal["captured", "catalog"] = "captured"
    currency: str = "USD"
    loyalty_points_divisor: int = Field(default=10, gt=0)

    # Receipt notifier
    receipt_webhook_url: Optional[str] = None
    receipt_timeout_seconds: float = 2.0

    # Application
    app_name: str = "pos-server"
    app_env: str = "development"
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    return Settings()
