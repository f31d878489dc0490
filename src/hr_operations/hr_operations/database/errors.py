from __future__ import annotations

import logging
from contextlib import contextmanager

import mysql.connector

from ..core.exceptions import ConflictError, InternalError

logger = logging.getLogger(__name__)


@contextmanager
def translate_errors():
    """Map driver errors to domain errors. Integrity violations are conflicts; the rest is internal."""
    try:
        yield
    except mysql.connector.IntegrityError as e:
        logger.warning("Integrity violation: %s", e)
        raise ConflictError("Record conflicts with existing data") from e
    except mysql.connector.Error as e:
        logger.exception("Database operation failed")
        raise InternalError("Database operation failed") from e
