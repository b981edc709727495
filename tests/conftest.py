"""Test fixtures and configuration."""
import copy
from datetime import datetime

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from brewlog.models import Base
from brewlog.schemas.collection import CollectionCreate
from brewlog.services import collection_store, recipe_store
from brewlog.services.kv_store import InMemoryStore
from brewlog.services.recipe_validation import validate_recipe_input


# Patch SQLite type compiler to handle PostgreSQL-specific types (JSONB).
# This lets us reuse the same ORM models with an in-memory SQLite test database.
from sqlalchemy.dialects.sqlite.base import SQLiteTypeCompiler

SQLiteTypeCompiler.visit_JSONB = lambda self, type_, **kw: "TEXT"


@pytest.fixture(scope="function")
def engine():
    """Create an in-memory SQLite engine for testing."""
    # Use check_same_thread=False for compatibility with FastAPI TestClient
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    """Create a test database session."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def store():
    return InMemoryStore()


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------

BASE_RECIPE = {
    "recipeName": "Morning V60",
    "isFavorite": False,
    "collections": [],
    "beanInfo": {
        "coffeeBeanBrand": "Onyx",
        "origin": "Ethiopia",
        "processingMethod": "Washed",
        "altitude": 1900,
        "roastingLevel": "light",
    },
    "brewingParameters": {
        "waterTemperature": 93,
        "brewingMethod": "pour-over",
        "grinderModel": "Comandante C40",
        "grinderUnit": "24 clicks",
        "filteringTools": "Hario V60 paper",
    },
    "measurements": {
        "coffeeBeans": 20,
        "water": 320,
        "brewedCoffeeWeight": 280,
        "tds": 1.35,
    },
    "sensationRecord": {
        "overallImpression": 8,
        "acidity": 7,
        "body": 6,
        "sweetness": 7,
        "tastingNotes": "Jasmine, bergamot",
    },
}


def build_payload(**overrides):
    """Valid recipe input; dict overrides are merged into the matching section."""
    payload = copy.deepcopy(BASE_RECIPE)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(payload.get(key), dict):
            payload[key].update(value)
        else:
            payload[key] = value
    return payload


@pytest.fixture
def recipe_payload():
    """Factory for raw recipe input in wire format."""
    return build_payload


@pytest.fixture
def recipe_factory(db):
    """Factory to create test recipes through the normal validation path."""
    def _create(date_created: datetime = None, **overrides):
        data = validate_recipe_input(build_payload(**overrides))
        return recipe_store.create_recipe(
            db, data, date_created=date_created, date_modified=date_created
        )
    return _create


@pytest.fixture
def collection_factory(db):
    """Factory to create test collections."""
    def _create(name="Favorites", **kwargs):
        return collection_store.create_collection(db, CollectionCreate(name=name, **kwargs))
    return _create
