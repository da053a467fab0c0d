"""
Transaction helpers for ProAce services
"""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from proace import db
from proace.exceptions import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(description):
    """
    Run a block of writes as one transaction.

    Commits when the block finishes. Any exception rolls the session back;
    SQLAlchemy errors are re-raised as PersistenceError, application errors
    propagate unchanged.

    Args:
        description: Human readable name of the operation, used in logs
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"{description} failed, transaction rolled back: {e}")
        raise PersistenceError(f"Failed to {description}") from e
    except Exception:
        db.session.rollback()
        raise


def get_or_404(model, object_id, label=None):
    """Load a row by primary key or raise NotFoundError"""
    instance = db.session.get(model, object_id)
    if instance is None:
        raise NotFoundError(f"{label or model.__name__} with id {object_id} not found")
    return instance
