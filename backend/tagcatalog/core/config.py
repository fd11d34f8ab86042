from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from tagcatalog.core.logging import get_logger

log = get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/catalog.db"
DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 200


@dataclass(frozen=True, slots=True)
class Settings:
    app_env: str
    database_url: str
    log_level: str
    default_page_size: int
    max_page_size: int

    @property
    def is_prod(self) -> bool:
        return self.app_env in {"prod", "production"}


def _get(env: Mapping[str, str], key: str, default: str) -> str:
    value = env.get(key, default)
    return value.strip()


def _get_int(env: Mapping[str, str], key: str, default: int, *, lo: int, hi: int) -> int:
    raw = _get(env, key, str(default))
    try:
        value = int(raw or default)
    except ValueError:
        log.warning("invalid_int_setting key=%s value=%s default=%s", key, raw, default)
        value = int(default)
    return max(lo, min(int(value), hi))


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    env = env or os.environ

    app_env = _get(env, "APP_ENV", "dev").lower()
    database_url = _get(env, "DATABASE_URL", "")
    log_level = _get(env, "LOG_LEVEL", "INFO").upper() or "INFO"

    max_page_size = _get_int(env, "MAX_PAGE_SIZE", MAX_PAGE_SIZE, lo=1, hi=1000)
    default_page_size = _get_int(env, "DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE, lo=1, hi=max_page_size)

    settings = Settings(
        app_env=app_env,
        database_url=database_url or DEFAULT_DATABASE_URL,
        log_level=log_level,
        default_page_size=default_page_size,
        max_page_size=max_page_size,
    )

    if settings.is_prod:
        missing: list[str] = []
        if not database_url:
            missing.append("DATABASE_URL")
        if missing:
            raise ValueError(f"Missing required env vars for prod: {', '.join(missing)}")

    return settings
