"""
core/db.py -- Engine ownership and transaction scopes for all stores.

Every store method takes an optional `conn` argument:

    store.grant_access(uid, ResourceType.PROJECT, pid)             # own transaction
    with db.transaction() as conn:
        project = projects.create(uid, "demo", conn=conn)
        acl.grant_access(uid, ResourceType.PROJECT, project.id, conn=conn)

Without `conn`, Database.scope() opens engine.begin() and commits on exit.
With `conn`, the statement joins the caller's transaction and the caller
decides commit or rollback. The choice is visible at every call site.

Usage:
    db = Database()                                   # settings.database_url
    db = Database("sqlite:///:memory:")               # tests
    db = Database("postgresql://user:pw@host/db")     # production
    db.close()

Layer rule: core/ is the kernel. No imports from other project packages.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.schema import metadata


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL and foreign key enforcement on every new SQLite connection.

    SQLite PRAGMAs are per-connection and are not inherited from the pool.
    foreign_keys=ON is required for the acl ON DELETE CASCADE to fire.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Database:
    """Owns the SQLAlchemy engine and hands out connections in transactions."""

    def __init__(self, db_url: Optional[str] = None) -> None:
        if db_url is None:
            from core.config import get_settings

            db_url = get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        metadata.create_all(self.engine)

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Open a transaction; commit on normal exit, roll back on exception."""
        with self.engine.begin() as conn:
            yield conn

    @contextmanager
    def scope(self, conn: Optional[Connection] = None) -> Iterator[Connection]:
        """Yield the caller's connection, or a fresh transaction when none is given."""
        if conn is not None:
            yield conn
            return
        with self.engine.begin() as own:
            yield own

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()
