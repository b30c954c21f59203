from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_ROOT_PATH_ENV = "TEMPORAL_STORE_ROOT_PATH"
_BASE_URL_ENV = "TEMPORAL_STORE_BASE_URL"
_MEMBER_LIMIT_ENV = "TEMPORAL_MEMBER_LIMIT"
_INDEX_NAME_ENV = "INDEX_NAME"
_INDEX_MEDIA_RANGE_ENV = "INDEX_MEDIA_RANGE"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_MEMBER_LIMIT = 100


@dataclass(frozen=True)
class Settings:
    store_root_path: Optional[str]
    base_url: str
    member_limit: int
    index_name: str
    index_media_range: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_member_limit(default: int) -> int:
    value = os.getenv(_MEMBER_LIMIT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_base_url(default: str) -> str:
    url = _read_str_env(_BASE_URL_ENV, default)
    return url if url.endswith("/") else f"{url}/"


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_root_path=_read_optional_env(_ROOT_PATH_ENV, "./tmp/resources"),
        base_url=_read_base_url("http://localhost:8000/"),
        member_limit=_read_member_limit(DEFAULT_MEMBER_LIMIT),
        index_name=_read_str_env(_INDEX_NAME_ENV, "index.html"),
        index_media_range=_read_str_env(_INDEX_MEDIA_RANGE_ENV, "text/html"),
        log_level=_read_log_level("INFO"),
    )
