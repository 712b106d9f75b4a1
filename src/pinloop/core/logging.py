"""Process-wide logging setup."""

import logging
import sys

from pinloop.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stdout handler on the root logger.

    Previous handlers are cleared so reloads do not duplicate output.
    """
    root = logging.getLogger()
    if root.handlers:
        root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root.setLevel((level or settings.log_level).upper())
    root.addHandler(handler)

    if not settings.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
