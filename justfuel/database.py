"""
Database session management for JustFuel.

Provides the database engine and session factory used by the service layer
and the command line scripts.
"""

import logging
import time
from contextlib import contextmanager

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker

from justfuel.config import Config
from justfuel.exceptions import DatabaseError
from justfuel.models import Base, get_engine

logger = logging.getLogger(__name__)

# Create engine and session factory
engine = get_engine(Config.DATABASE_URL)
SessionLocal = scoped_session(sessionmaker(bind=engine))

# Add slow query logging
SLOW_QUERY_THRESHOLD_MS = Config.SLOW_QUERY_THRESHOLD_MS


@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Record query start time."""
    conn.info.setdefault("query_start_time", []).append(time.time())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow queries."""
    total_time = time.time() - conn.info["query_start_time"].pop(-1)
    duration_ms = total_time * 1000

    if duration_ms > SLOW_QUERY_THRESHOLD_MS:
        # Truncate long queries for logging
        truncated_query = statement[:200] + "..." if len(statement) > 200 else statement
        logger.warning(
            f"Slow query detected: {duration_ms:.2f}ms - {truncated_query}", extra={"duration_ms": duration_ms}
        )


def init_db(bind=None):
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind or engine)


@contextmanager
def session_scope(session_factory=SessionLocal):
    """
    Transactional scope around a series of operations.

    Commits on success, rolls back and re-raises on failure. SQLAlchemy
    errors are wrapped in DatabaseError.

    Usage:
        with session_scope() as db:
            FillupService(db).recalculate_fillups(vehicle_id)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database transaction failed: {e}")
        raise DatabaseError("Database transaction failed", {'error': str(e)}) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
