"""Database connection management for PostgreSQL."""
import time
from functools import lru_cache
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from utils.config import Settings, get_settings
from utils.logging_utils import get_logger

logger = get_logger(__name__)


def build_engine(settings: Settings) -> Engine:
    """
    Create an engine for the configured database.

    Postgres connections get a statement timeout so a stuck query fails
    instead of hanging the request.
    """
    connect_args = {}
    if settings.database_url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={settings.db_statement_timeout_ms}"
    return create_engine(settings.database_url, pool_pre_ping=True, connect_args=connect_args)


def wait_for_database(engine: Engine, retries: int, delay: float) -> Engine:
    """
    Block until the database answers, retrying ``retries`` times.

    Raises:
        OperationalError: The database never became reachable.
    """
    last_error: Optional[OperationalError] = None
    for attempt in range(1, max(1, retries) + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return engine
        except OperationalError as e:
            last_error = e
            logger.warning("Failed to connect database (attempt %s/%s): %s", attempt, retries, str(e))
            time.sleep(delay)
    raise last_error


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    settings = get_settings()
    engine = build_engine(settings)
    return wait_for_database(engine, settings.db_connect_retries, settings.db_connect_retry_delay)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db_session() -> Session:
    """
    Creates and returns a new database session.

    Returns
    -------
    Session
        A SQLAlchemy database session.
    """
    return get_session_factory()()
