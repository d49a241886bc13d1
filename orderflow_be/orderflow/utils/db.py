"""
Unit-of-work helper shared by the order services.
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orderflow.utils.errors import TransactionFailed

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session):
    """Commit everything done inside the block, or nothing at all.

    Any exception rolls the session back. Store errors are reported as
    ``TransactionFailed``; domain errors propagate unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Transaction rolled back: %s", e, exc_info=True)
        raise TransactionFailed(details={"reason": e.__class__.__name__}) from e
    except Exception:
        db.rollback()
        raise
