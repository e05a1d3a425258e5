"""Process-wide logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the CLI and the API server."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # SQLAlchemy engine logging is controlled by echo=, keep it quiet here
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
