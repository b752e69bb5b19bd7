"""Runtime logging configuration with bounded retention."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from story_pub.settings import RuntimeSettings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_CONFIGURED = False
_INSTALLED_HANDLERS: list[logging.Handler] = []


def _level(name: str, default: int) -> int:
    value = getattr(logging, name.strip().upper(), None)
    return value if isinstance(value, int) else default


def configure_runtime_logging(settings: RuntimeSettings | None = None) -> bool:
    """Configure console + rotating file logs once per process.

    Returns False when logging was already configured by an earlier call.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return False

    effective = settings or RuntimeSettings.from_env()
    effective.log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    file_handler = RotatingFileHandler(
        filename=effective.log_path,
        maxBytes=effective.log_max_bytes,
        backupCount=effective.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(_level(effective.log_level, logging.INFO))
    root.handlers.clear()
    root.addHandler(stream_handler)
    root.addHandler(file_handler)
    _INSTALLED_HANDLERS[:] = [stream_handler, file_handler]
    logging.getLogger("uvicorn.access").setLevel(
        _level(effective.access_log_level, logging.WARNING)
    )

    _CONFIGURED = True
    return True


def reset_runtime_logging() -> None:
    """Remove handlers installed by `configure_runtime_logging` and allow reconfiguration."""
    global _CONFIGURED
    root = logging.getLogger()
    for handler in _INSTALLED_HANDLERS:
        root.removeHandler(handler)
        handler.close()
    _INSTALLED_HANDLERS.clear()
    _CONFIGURED = False
