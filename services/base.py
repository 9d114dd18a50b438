from contextlib import contextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError

from exceptions import BusinessException
from models import db

logger = structlog.get_logger()


@contextmanager
def transaction(error_message):
    """Commit on success, roll back and raise ``BusinessException`` on database errors.

    Domain exceptions raised inside the block roll back and propagate unchanged.
    """
    try:
        yield db.session
        db.session.commit()
    except BusinessException:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error('transaction_failed', error=str(exc), message=error_message)
        raise BusinessException(error_message, status_code=500) from exc


def paginate(query, page, per_page):
    return query.paginate(page=page, per_page=per_page, error_out=False)
