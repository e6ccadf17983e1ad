"""
Engine and session factory setup.

Usage:
    from supportdesk.models.database import create_session_factory

    session_factory = create_session_factory("sqlite:///./supportdesk.db")
    with session_factory() as session:
        ...
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from supportdesk.models.base import Base


def create_db_engine(database_url: str) -> Engine:
    """
    Create an engine for ``database_url``.

    In-memory SQLite gets a StaticPool so every session shares the one
    connection (and therefore the one database).
    """
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(
    database_url: str,
    create_tables: bool = True,
) -> sessionmaker[Session]:
    """Build a sessionmaker, creating missing tables unless told not to."""
    engine = create_db_engine(database_url)
    if create_tables:
        Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
