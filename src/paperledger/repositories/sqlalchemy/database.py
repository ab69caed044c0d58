"""Engine and session management for the key-value store database.

Several tabs (processes or AppContexts) may write one SQLite file at the
same time, so file databases run in WAL mode with a busy timeout: a writer
waits for the lock instead of failing, and the version guard in the store
decides which write wins.
"""

from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event, Engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from paperledger.config.settings import get_settings

Base = declarative_base()

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def is_sqlite_url(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _is_memory_sqlite(url: str) -> bool:
    database = make_url(url).database
    return not database or database == ":memory:"


def build_engine(url: str, busy_timeout_ms: Optional[int] = None, **kwargs) -> Engine:
    """
    Create an engine for the store.

    SQLite connections may be shared across FastAPI worker threads and get
    a busy timeout; file databases also switch to WAL.
    """
    if not is_sqlite_url(url):
        return create_engine(url, echo=False, **kwargs)

    if busy_timeout_ms is None:
        busy_timeout_ms = get_settings().sqlite_busy_timeout_ms
    connect_args = {"check_same_thread": False, **kwargs.pop("connect_args", {})}
    engine = create_engine(url, connect_args=connect_args, echo=False, **kwargs)
    use_wal = not _is_memory_sqlite(url)

    @event.listens_for(engine, "connect")
    def _configure_sqlite(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
            if use_wal:
                cursor.execute("PRAGMA journal_mode = WAL")
        finally:
            cursor.close()

    return engine


def configure(url: str) -> Engine:
    """Point the module-level engine and session factory at url, creating tables."""
    global _engine, _SessionLocal

    reset_database()
    _engine = build_engine(url)
    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    create_tables(_engine)
    return _engine


def create_tables(engine: Engine) -> None:
    from paperledger.repositories.sqlalchemy import orm_models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_engine() -> Engine:
    """Get or create the engine for the configured database URL."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().get_database_url())
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session per request."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def get_session() -> Session:
    """Get a long-lived session (one per AppContext)."""
    return get_session_factory()()


def init_db() -> None:
    """Create the kv_entries table on the configured database."""
    create_tables(get_engine())


def init_db_with_path(db_path: Path) -> None:
    """Switch to the SQLite file at db_path."""
    configure(f"sqlite:///{db_path}")


def reset_database() -> None:
    """Dispose the engine so the next access reads settings again."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    _engine = None
    _SessionLocal = None
