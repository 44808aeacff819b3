import json
import os
import sys
import uuid
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models import Base, FeatureToggle
from utils.config import get_settings


# -----------------
# ENVIRONMENT MOCKS
# -----------------
@pytest.fixture(scope="session", autouse=True)
def mock_env():
    """Set required environment variables for testing."""
    original_env = os.environ.copy()

    os.environ["ENVIRONMENT"] = "test"
    os.environ["DATABASE_URL"] = os.getenv("TEST_DATABASE_URL", "sqlite://")
    os.environ["FRONTEND_ORIGIN"] = "https://toggles.example.com"
    os.environ["SCHEDULER_INTERVAL_SECONDS"] = "0.05"
    get_settings.cache_clear()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    get_settings.cache_clear()


# -----------------
# DATABASE FIXTURES
# -----------------
def _make_engine():
    url = os.getenv("TEST_DATABASE_URL", "sqlite://")
    if not url.startswith("sqlite"):
        return create_engine(url)

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _case_sensitive_like(dbapi_connection, _record):
        # Postgres LIKE is case sensitive; make SQLite agree.
        dbapi_connection.execute("PRAGMA case_sensitive_like = ON")

    return engine


@pytest.fixture(scope="function")
def test_engine():
    engine = _make_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def test_db(session_factory):
    """Provides a fresh test database session for each test function."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


# -----------------
# DATA FIXTURES
# -----------------
@pytest.fixture
def group_id():
    return str(uuid.uuid4())


@pytest.fixture
def group_secret():
    return "s3cret-" + uuid.uuid4().hex


@pytest.fixture
def seed_toggle(test_db, group_id, group_secret):
    """
    Returns a function that inserts a toggle straight into the database.

    ``name`` is appended to the fixture's group id unless ``key`` is given.
    """

    def _seed(name="feature", value="false", key=None, secret=None, active_at=None,
              disabled_at=None, tags=None):
        toggle = FeatureToggle(
            key=key if key is not None else f"{group_id}|{name}",
            value=value,
            active_at=active_at,
            disabled_at=disabled_at,
            secret=group_secret if secret is None else secret,
            tags=tags or [],
        )
        test_db.add(toggle)
        test_db.commit()
        return toggle

    return _seed


@pytest.fixture
def utc():
    def _utc(*args):
        return datetime(*args, tzinfo=timezone.utc)

    return _utc


# -----------------
# API GATEWAY EVENTS
# -----------------
@pytest.fixture
def api_gateway_event():
    """Creates a mock API Gateway proxy event for testing"""

    def _event(http_method="GET", path="/", path_params=None, query_params=None, body=None, origin=None):
        headers = {"Origin": origin} if origin else {}
        return {
            "httpMethod": http_method,
            "path": path,
            "pathParameters": path_params or {},
            "queryStringParameters": query_params or {},
            "headers": headers,
            "body": json.dumps(body) if isinstance(body, dict) else body,
        }

    return _event
