from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field

# Used as the captcha digest salt when no admin password is configured.
DEFAULT_CAPTCHA_SECRET = "default-secret"

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8787",
    "http://127.0.0.1:8787",
]


@dataclass(frozen=True)
class GuardConfig:
    max_attempts: int
    cooldown_ms: int
    secret: str


class Settings(BaseModel):
    admin_password: Optional[str] = Field(default=None)
    max_attempts: int = Field(default=5)
    cooldown_ms: int = Field(default=600_000)
    identity_header: str = Field(default="CF-Connecting-IP")
    database_url: str = Field(default="sqlite:///./verbs.db")
    default_page_size: int = Field(default=10)
    max_page_size: int = Field(default=50)
    verify_rate_limit: str = Field(default="10/minute")
    auth_log_file: str = Field(default="auth.log")
    allowed_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))

    @property
    def captcha_secret(self) -> str:
        return self.admin_password or DEFAULT_CAPTCHA_SECRET

    def guard_config(self) -> GuardConfig:
        return GuardConfig(
            max_attempts=self.max_attempts,
            cooldown_ms=self.cooldown_ms,
            secret=self.captcha_secret,
        )


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name, default)
    if value == "":
        return default
    return value


def _origins(raw: Optional[str]) -> List[str]:
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return origins or list(DEFAULT_ALLOWED_ORIGINS)


def _load_settings() -> Settings:
    return Settings(
        admin_password=_env("ADMIN_PASSWORD"),
        max_attempts=int(_env("MAX_ATTEMPTS", "5")),
        cooldown_ms=int(_env("COOLDOWN_MS", "600000")),
        identity_header=_env("IDENTITY_HEADER", "CF-Connecting-IP"),
        database_url=_env("DATABASE_URL", "sqlite:///./verbs.db"),
        default_page_size=int(_env("DEFAULT_PAGE_SIZE", "10")),
        max_page_size=int(_env("MAX_PAGE_SIZE", "50")),
        verify_rate_limit=_env("VERIFY_RATE_LIMIT", "10/minute"),
        auth_log_file=_env("AUTH_LOG_FILE", "auth.log"),
        allowed_origins=_origins(_env("ALLOWED_ORIGINS")),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return _load_settings()


def reload_settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


__all__ = ["DEFAULT_CAPTCHA_SECRET", "GuardConfig", "Settings", "get_settings", "reload_settings"]
