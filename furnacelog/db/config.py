"""Database configuration for the FurnaceLog service."""
import logging
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import create_engine, Session

from furnacelog.config import DATABASE_URL

logger = logging.getLogger(__name__)

IS_SQLITE = DATABASE_URL.startswith("sqlite")


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine, enabling foreign keys on SQLite connections."""
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        built = create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)

        @event.listens_for(built, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return built
    return create_engine(database_url, echo=False, pool_pre_ping=True, **kwargs)


if IS_SQLITE:
    logger.info("Using SQLite database: %s", DATABASE_URL)
else:
    logger.info("Using PostgreSQL database")

engine = build_engine(DATABASE_URL)


def get_session() -> Generator[Session, None, None]:
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session
