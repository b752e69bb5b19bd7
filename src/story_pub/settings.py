"""Environment-driven runtime settings for the API, CLI, and logging."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_DB_PATH = Path("work/local/story_pub.db")
DEFAULT_LOG_PATH = Path("work/logs/story_pub.log")
DEFAULT_CORS_ORIGINS = (
    "http://127.0.0.1:5173",
    "http://localhost:5173",
)


def int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    """Read a clamped integer; malformed values fall back to `default`."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def _str_env(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class RuntimeSettings:
    """Resolved runtime configuration."""

    db_path: Path = DEFAULT_DB_PATH
    busy_timeout_seconds: int = 30
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"
    log_path: Path = DEFAULT_LOG_PATH
    log_max_bytes: int = 5 * 1024 * 1024
    log_backup_count: int = 10
    access_log_level: str = "WARNING"

    @classmethod
    def from_env(cls, *, db_path: Path | None = None) -> RuntimeSettings:
        """Resolve settings from explicit args, then env vars, then defaults."""
        resolved_db_path = db_path
        if resolved_db_path is None:
            resolved_db_path = Path(_str_env("STORY_PUB_DB_PATH", str(DEFAULT_DB_PATH)))
        return cls(
            db_path=resolved_db_path,
            busy_timeout_seconds=int_env(
                "STORY_PUB_LOCK_TIMEOUT_SECONDS", 30, minimum=1, maximum=120
            ),
            cors_origins=_csv_env("STORY_PUB_CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
            log_level=_str_env("STORY_PUB_LOG_LEVEL", "INFO").upper(),
            log_path=Path(_str_env("STORY_PUB_LOG_PATH", str(DEFAULT_LOG_PATH))),
            log_max_bytes=int_env(
                "STORY_PUB_LOG_MAX_BYTES",
                5 * 1024 * 1024,
                minimum=64 * 1024,
                maximum=100 * 1024 * 1024,
            ),
            log_backup_count=int_env("STORY_PUB_LOG_BACKUP_COUNT", 10, minimum=1, maximum=120),
            access_log_level=_str_env("STORY_PUB_ACCESS_LOG_LEVEL", "WARNING").upper(),
        )
