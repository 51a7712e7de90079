"""Status lines for the person running the CLI."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional


def log_user_notice(message: str, *args: Any, logger: Optional[logging.Logger] = None) -> None:
    """Log *message* at INFO, or echo it to stdout when INFO is filtered out.

    Results such as "Copied to clipboard" must reach the terminal even when
    the configured level is WARNING or above.
    """

    logger = logger or logging.getLogger()
    if logger.isEnabledFor(logging.INFO):
        logger.info(message, *args)
        return

    text = message % args if args else message
    sys.stdout.write(f"{text}\n")
    sys.stdout.flush()
