"""
Database connection and setup for the durable cache tier.
SQLAlchemy engines are created lazily, once per database URL, and reused.
"""
import threading
from typing import Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from weekly_recap.models import Base

_engines: Dict[str, Engine] = {}
_engines_lock = threading.Lock()


def create_cache_engine(database_url: str) -> Engine:
    """
    Create an engine for the cache database.

    In-memory SQLite URLs share a single connection so every session sees
    the same data.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}  # Needed for SQLite
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)
    return create_engine(database_url, echo=False, pool_pre_ping=True)


def get_engine(database_url: str) -> Engine:
    """Get or create the process-wide engine for a URL."""
    with _engines_lock:
        engine = _engines.get(database_url)
        if engine is None:
            engine = create_cache_engine(database_url)
            _engines[database_url] = engine
        return engine


def init_db(engine: Engine) -> None:
    """
    Initialize database - create all tables
    Safe to call multiple times (won't recreate existing tables)
    """
    Base.metadata.create_all(bind=engine)


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
