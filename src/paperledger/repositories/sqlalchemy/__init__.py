"""SQLAlchemy repository implementations."""

from paperledger.repositories.sqlalchemy.database import (
    build_engine,
    configure,
    create_tables,
    get_engine,
    get_session_factory,
    get_db,
    get_session,
    init_db,
    init_db_with_path,
    is_sqlite_url,
    reset_database,
    Base,
)
from paperledger.repositories.sqlalchemy.kv_store import SqlAlchemyKeyValueStore

__all__ = [
    "build_engine",
    "configure",
    "create_tables",
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_session",
    "init_db",
    "init_db_with_path",
    "is_sqlite_url",
    "reset_database",
    "Base",
    "SqlAlchemyKeyValueStore",
]
