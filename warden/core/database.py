"""Database engine and session management (PostgreSQL in prod, SQLite for dev/tests)."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from warden.core.config import settings


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _enable_sqlite_write_locking(engine: Engine) -> None:
    """
    Make every SQLite transaction BEGIN IMMEDIATE.

    pysqlite defers BEGIN until the first write, so two transactions can both
    read a count before either writes. Taking the write lock at BEGIN
    serializes them, which is what the row lock does on PostgreSQL.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for url; SQLite engines get immediate-mode transactions."""
    if not _is_sqlite(url):
        return create_engine(url, pool_pre_ping=True, echo=echo)
    kwargs: dict[str, Any] = {
        "echo": echo,
        "connect_args": {"check_same_thread": False, "timeout": 30},
    }
    if url in ("sqlite://", "sqlite:///:memory:", "sqlite+pysqlite://"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    _enable_sqlite_write_locking(engine)
    return engine


engine = make_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
