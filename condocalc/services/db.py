"""Database engine and session factory construction.

Engines are built from the loaded AppConfig by the entry points (CLI and
app factory); nothing is connected at import time.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from condocalc.models import Base


def create_db_engine(database_url: str) -> Engine:
    """Create engine (SQLite uses StaticPool so in-memory databases are shared)."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)


__all__ = [
    "create_db_engine",
    "create_session_factory",
    "init_db",
]
