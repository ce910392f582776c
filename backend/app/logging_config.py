"""Logging configuration for the messaging backend."""

import logging
import sys

from app.config import get_settings

_LOG_FORMAT = "[%(asctime)s][%(levelname)s][%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Attach a single stdout handler to the root logger."""

    resolved = (level or get_settings().log_level).upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(resolved)
    console_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root_logger.addHandler(console_handler)

    # Timer threads log every guarded transition at debug; keep SQL noise out.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
