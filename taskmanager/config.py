# taskmanager/config.py
from __future__ import annotations

import logging
import re
from datetime import timedelta
from typing import Any, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# "500ms", "30s", "15m", "1h30m", "7d"
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)")
_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def parse_duration(raw: str) -> timedelta | str:
    """Parse a compact duration string.

    Strings that are not in the compact form are returned untouched so
    pydantic can still try bare seconds or ISO 8601 on them.
    """
    text = raw.strip().lower()
    if re.fullmatch(r"\d+(?:\.\d+)?", text):
        return timedelta(seconds=float(text))
    if not text or _DURATION_PART.sub("", text):
        return raw
    total = timedelta()
    for amount, unit in _DURATION_PART.findall(text):
        total += float(amount) * _DURATION_UNITS[unit]
    return total


class Settings(BaseSettings):
    # HTTP server
    SERVER_HOST: str = Field("0.0.0.0")
    SERVER_PORT: int = Field(8080)
    SERVER_READ_TIMEOUT: timedelta = Field(timedelta(seconds=10))
    SERVER_WRITE_TIMEOUT: timedelta = Field(timedelta(seconds=10))
    SERVER_SHUTDOWN_TIMEOUT: timedelta = Field(timedelta(seconds=30))
    # only honour X-Forwarded-For when a reverse proxy sets it
    SERVER_TRUST_PROXY_HEADERS: bool = Field(False)

    # PostgreSQL
    DB_HOST: str = Field("localhost")
    DB_PORT: int = Field(5432)
    DB_USER: str = Field("postgres")
    DB_PASSWORD: str = Field("postgres")
    DB_NAME: str = Field("taskmanager")
    DATABASE_URL: Optional[str] = Field(None)  # wins over the DB_* parts

    # JWT / Auth
    JWT_SECRET: str = Field("dev-secret-change-me")   # override in env for prod
    JWT_ALGORITHM: str = Field("HS256")
    JWT_ACCESS_TTL: timedelta = Field(timedelta(minutes=15))
    JWT_REFRESH_TTL: timedelta = Field(timedelta(days=7))

    LOG_LEVEL: str = Field("INFO")

    # Load from environment and (optionally) a .env file
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        frozen=True,
    )

    @field_validator("*", mode="wrap")
    @classmethod
    def _fallback_to_default(cls, value: Any, handler, info: ValidationInfo) -> Any:
        field = cls.model_fields[info.field_name]
        try:
            if isinstance(value, str) and field.annotation is timedelta:
                value = parse_duration(value)
            return handler(value)
        except ValueError:
            logger.warning(
                "invalid setting %s=%r, using default %r",
                info.field_name, value, field.default,
            )
            return field.default

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def request_timeout(self) -> timedelta:
        """Budget for a whole request: reading it plus writing the response."""
        return self.SERVER_READ_TIMEOUT + self.SERVER_WRITE_TIMEOUT


def get_settings() -> Settings:
    return Settings()
