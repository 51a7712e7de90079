import configparser
import os
from dataclasses import dataclass
from typing import Optional

from clipinspect.config.constants import (
    DEFAULT_HISTORY_MAX_ITEMS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PREVIEW_MAX_INLINE_BYTES,
    DEFAULT_WRITE_RETRIES,
    DEFAULT_WRITE_RETRY_DELAY,
    SETTINGS_PATH,
)


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from ``settings.ini``."""

    history_max_items: int = DEFAULT_HISTORY_MAX_ITEMS
    write_retries: int = DEFAULT_WRITE_RETRIES
    write_retry_delay: float = DEFAULT_WRITE_RETRY_DELAY
    preview_max_inline_bytes: int = DEFAULT_PREVIEW_MAX_INLINE_BYTES
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = None


def load_settings(path: Optional[str] = None) -> Settings:
    """Read *path* (or the bundled settings.ini) falling back to defaults.

    Missing files and missing keys are not errors; every value has a fallback.
    """

    config = configparser.ConfigParser()
    config.read(path or SETTINGS_PATH, encoding="utf-8")

    # Env override for the log file, handy when running the CLI
    log_file = os.environ.get("CLIPINSPECT_LOG_FILE") or config.get(
        "Logging", "LogFile", fallback=""
    )

    history_max_items = config.getint(
        "History", "MaxItems", fallback=DEFAULT_HISTORY_MAX_ITEMS
    )
    if history_max_items < 1:
        history_max_items = DEFAULT_HISTORY_MAX_ITEMS

    return Settings(
        history_max_items=history_max_items,
        write_retries=max(1, config.getint("Write", "Retries", fallback=DEFAULT_WRITE_RETRIES)),
        write_retry_delay=config.getfloat(
            "Write", "RetryDelay", fallback=DEFAULT_WRITE_RETRY_DELAY
        ),
        preview_max_inline_bytes=config.getint(
            "Preview", "MaxInlineBytes", fallback=DEFAULT_PREVIEW_MAX_INLINE_BYTES
        ),
        log_level=config.get("Logging", "Level", fallback=DEFAULT_LOG_LEVEL).upper(),
        log_file=log_file or None,
    )


SETTINGS = load_settings()
