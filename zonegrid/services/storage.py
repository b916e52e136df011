"""
Session helpers shared by the services.
"""

import logging
import math

from sqlalchemy.exc import OperationalError

from zonegrid.errors import StorageError
from zonegrid.extensions import db

logger = logging.getLogger(__name__)


def commit_session():
    """Commit the current session, rolling back on any failure.

    Operational failures (locked database, lost connection, timeout) are
    re-raised as StorageError so callers can retry.
    """
    try:
        db.session.commit()
    except OperationalError as exc:
        db.session.rollback()
        logger.warning("Storage failure during commit: %s", exc)
        raise StorageError('Storage is temporarily unavailable, please retry') from exc
    except Exception:
        db.session.rollback()
        raise


def is_number(value):
    """Finite int or float; booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
