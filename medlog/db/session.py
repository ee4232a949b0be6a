"""
Engine and session factory for the local backend.

SQLite in-memory URLs share a single connection so every session (and every
thread the web server hands a request to) sees the same tables.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medlog.db.base import Base


def make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return create_engine(url, **options)


def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine):
    """Create tables (for local mode and tests)."""
    # Import models so they register with Base.metadata
    from medlog.models import note  # noqa: F401

    Base.metadata.create_all(bind=engine)
