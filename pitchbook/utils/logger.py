"""Process-wide logging setup for the API and its scripts."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from pitchbook.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Attach the stdout handler once; later calls are no-ops."""
    global _configured
    if _configured:
        return

    resolved_level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=resolved_level, format=LOG_FORMAT, stream=sys.stdout)
    # uvicorn installs its own handlers; keep its levels in step with ours.
    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).setLevel(resolved_level)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
