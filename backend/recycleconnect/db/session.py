"""
Database engine and session management.
"""
from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from recycleconnect.core.config import settings
from recycleconnect.db.base import Base


def build_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create an engine for the configured database."""
    url = database_url or settings.DATABASE_URL
    options = {
        "echo": settings.DB_ECHO if echo is None else echo,
        "pool_pre_ping": True,
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        # In-memory SQLite lives inside one connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_recycle"] = 3600
    return create_engine(url, **options)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Session factory used by the SQL store."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(engine: Engine):
    """Initialize database tables."""
    # Import all models so SQLAlchemy can register them
    from recycleconnect import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
