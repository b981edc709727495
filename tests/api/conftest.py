"""API test fixtures: a TestClient bound to the test session and state store."""
import pytest
from fastapi.testclient import TestClient

from brewlog.database import get_db
from brewlog.main import app
from brewlog.services.kv_store import get_store


@pytest.fixture
def client(engine, db, store):
    """Routes see the same session and in-memory store as the test body."""
    app.dependency_overrides.update({
        get_db: lambda: db,
        get_store: lambda: store,
    })
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
