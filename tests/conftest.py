"""
Test configuration and fixtures for the click tracker.
This centralizes all test setup, making individual tests clean.

ClickHouse is replaced by FakeClickHouseSession (tests/fakes.py), so
every query the app sends can be inspected.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from clicktrack_app.config import AnalyticsStoreConfig
from clicktrack_app.database.connection import Base, get_db
from clicktrack_app.dependencies import get_click_storage, get_ingest_telemetry
from clicktrack_app.storage.client import ClickHouseClient
from clicktrack_app.storage.strategies import ClickHouseClickStorage
from clicktrack_app.tracking.telemetry import IngestTelemetry
from tests.fakes import FakeClickHouseSession

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def store_config():
    return AnalyticsStoreConfig(
        host="clickhouse.example.com",
        port=8443,
        database="analytics",
        username="tracker",
        password="s3cret",
        timeout=5.0,
    )


@pytest.fixture
def fake_clickhouse():
    return FakeClickHouseSession()


@pytest.fixture
def store_client(store_config, fake_clickhouse):
    return ClickHouseClient(store_config, session=fake_clickhouse)


@pytest.fixture
def click_storage(store_client):
    return ClickHouseClickStorage(store_client)


@pytest.fixture
def telemetry():
    return IngestTelemetry()


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    This ensures tests are isolated and don't affect each other.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        # Cleanup
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session, click_storage, telemetry):
    """
    Create a test client with the database and ClickHouse overridden.
    This is the main fixture that tests will use.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_click_storage] = lambda: click_storage
    app.dependency_overrides[get_ingest_telemetry] = lambda: telemetry

    # Create test client
    with TestClient(app) as test_client:
        yield test_client

    # Clean up overrides
    app.dependency_overrides.clear()
