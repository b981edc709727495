"""Database engine, sessions and the request-scoped session dependency."""
import os
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from brewlog.config import get_settings


def get_database_url() -> str:
    """DATABASE_URL when set, else a PostgreSQL URL from the DB_* settings."""
    if url := os.getenv("DATABASE_URL"):
        return url

    s = get_settings()
    return f"postgresql://{s.DB_USER}:{s.DB_PASSWORD}@{s.DB_HOST}:{s.DB_PORT}/{s.DB_NAME}"


@lru_cache
def get_engine() -> Engine:
    url = get_database_url()
    if url.startswith("sqlite"):
        # Local single-file runs; sessions cross the threadpool
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), expire_on_commit=False)


def get_db() -> Iterator[Session]:
    """One session per request, closed when the response is sent."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or roll all of it back."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
