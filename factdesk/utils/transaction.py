import logging
from contextlib import contextmanager
from sqlalchemy.exc import DBAPIError, OperationalError
from factdesk.errors import DependencyUnavailable
from factdesk.extensions import db

logger = logging.getLogger(__name__)


@contextmanager
def atomic():
    """
    Run a block as one transaction on the request session.
    Commits on success; any exception rolls everything back and propagates.
    Connection-level failures surface as DependencyUnavailable.
    """
    try:
        yield db.session
        db.session.commit()
    except OperationalError as e:
        db.session.rollback()
        logger.warning(f"Transaction aborted, store unavailable: {e}")
        raise DependencyUnavailable('Data store unavailable') from e
    except DBAPIError as e:
        db.session.rollback()
        if e.connection_invalidated:
            raise DependencyUnavailable('Data store connection lost') from e
        raise
    except Exception:
        db.session.rollback()
        raise
