"""GoldGuard configuration.

Settings are read from GOLDGUARD_* environment variables, with constructor
arguments taking precedence, so the same code runs in a browser-backed proxy,
a CLI, or tests.

Environment Variables:
    GOLDGUARD_API_URL: Remote case API base URL (default: http://localhost:5000)
    GOLDGUARD_API_TIMEOUT: Remote call timeout in seconds (default: 8.0)
    GOLDGUARD_POLL_INTERVAL: Case list refresh interval in seconds (default: 30)
    GOLDGUARD_STORAGE: "memory", "json" (default) or "redis"
    GOLDGUARD_STORAGE_PATH: JSON queue file (default: ~/.goldguard/reports.json)
    GOLDGUARD_ADMIN_TOKEN: Static bearer token for the case API (optional)
    GOLDGUARD_ADMIN_EMAIL / GOLDGUARD_ADMIN_PASSWORD: Login credentials used
        to obtain a bearer token when no static token is set (optional)
    REDIS_MODE, REDIS_HOST, REDIS_PORT, REDIS_DB, REDIS_PASSWORD,
    REDIS_SENTINEL_HOSTS, REDIS_MASTER_SET: Redis connection (redis storage only)
    GOLDGUARD_REDIS_KEY: Hash key holding the local queue (default: goldguard:cases)
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

logger = logging.getLogger(__name__)


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    return value if value not in (None, "") else default


class GoldGuardSettings(BaseModel):
    """Runtime settings for the case service"""

    api_url: str = Field(default="http://localhost:5000")
    api_timeout: float = Field(default=8.0, gt=0, le=60.0)
    poll_interval: float = Field(default=30.0, gt=0)

    storage: str = Field(default="json", description="memory | json | redis")
    storage_path: Path = Field(default_factory=lambda: Path.home() / ".goldguard" / "reports.json")

    admin_token: Optional[SecretStr] = None
    admin_email: Optional[str] = None
    admin_password: Optional[SecretStr] = None

    redis_mode: str = Field(default="standalone")
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_db: int = Field(default=0, ge=0)
    redis_password: Optional[SecretStr] = None
    redis_sentinel_hosts: str = Field(default="")
    redis_master_set: str = Field(default="mymaster")
    redis_key: str = Field(default="goldguard:cases")

    @field_validator("storage", "redis_mode")
    @classmethod
    def lower_choice(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("storage")
    @classmethod
    def known_storage(cls, v: str) -> str:
        if v not in ("memory", "json", "redis"):
            raise ValueError(f"storage must be one of memory, json, redis (got {v!r})")
        return v

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def from_env(cls, **overrides: Any) -> "GoldGuardSettings":
        """Build settings from the environment; keyword overrides win."""
        values = {
            "api_url": _env("GOLDGUARD_API_URL"),
            "api_timeout": _env("GOLDGUARD_API_TIMEOUT"),
            "poll_interval": _env("GOLDGUARD_POLL_INTERVAL"),
            "storage": _env("GOLDGUARD_STORAGE"),
            "storage_path": _env("GOLDGUARD_STORAGE_PATH"),
            "admin_token": _env("GOLDGUARD_ADMIN_TOKEN"),
            "admin_email": _env("GOLDGUARD_ADMIN_EMAIL"),
            "admin_password": _env("GOLDGUARD_ADMIN_PASSWORD"),
            "redis_mode": _env("REDIS_MODE"),
            "redis_host": _env("REDIS_HOST"),
            "redis_port": _env("REDIS_PORT"),
            "redis_db": _env("REDIS_DB"),
            "redis_password": _env("REDIS_PASSWORD"),
            "redis_sentinel_hosts": _env("REDIS_SENTINEL_HOSTS"),
            "redis_master_set": _env("REDIS_MASTER_SET"),
            "redis_key": _env("GOLDGUARD_REDIS_KEY"),
        }
        values = {k: v for k, v in values.items() if v is not None}
        values.update(overrides)
        settings = cls(**values)
        logger.info(
            f"GoldGuard settings loaded: api_url={settings.api_url}, "
            f"storage={settings.storage}, poll_interval={settings.poll_interval}s"
        )
        return settings
