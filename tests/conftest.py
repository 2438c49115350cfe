"""Shared pytest fixtures for customer_sites tests."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from customer_sites.config import Settings
from customer_sites.core.auth import compute_auth_hash, now_ms
from customer_sites.db.schema import Base
from customer_sites.storage.relational import RelationalSiteStorage

TEST_PASSWORD = "correct horse battery staple"


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def storage(engine):
    """Relational storage bound to the in-memory engine."""
    return RelationalSiteStorage(engine)


@pytest.fixture
def settings():
    """Settings with a known password and no environment influence."""
    return Settings(_env_file=None, PASSWORD=TEST_PASSWORD)


@pytest.fixture
def client(settings, storage):
    """TestClient for an app wired to the in-memory storage."""
    from customer_sites.api.app import create_app

    app = create_app(settings=settings, storage=storage)
    return TestClient(app)


@pytest.fixture
def auth_params():
    """Valid auth query parameters for TEST_PASSWORD."""
    return {"auth": compute_auth_hash(TEST_PASSWORD), "t": str(now_ms())}
