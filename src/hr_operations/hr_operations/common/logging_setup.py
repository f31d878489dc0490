from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process (idempotent under basicConfig)."""
    logging.basicConfig(format=LOG_FORMAT, level=getattr(logging, str(level).upper(), logging.INFO))
    # mysql-connector is chatty at DEBUG.
    logging.getLogger("mysql.connector").setLevel(logging.WARNING)
