"""Database engine setup for the SQL document store.

File databases run SQLite in WAL mode with foreign keys enabled. With no
path, a single shared in-memory connection is used so every call sees
the same database.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from crudkit.storage.database.schema import metadata


def create_db_engine(db_path: Path | None = None, *, echo: bool = False) -> Engine:
    """Create a SQLite engine for *db_path*, or an in-memory engine when None."""
    if db_path is None:
        engine = create_engine(
            "sqlite://",
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(f"sqlite:///{db_path}", echo=echo)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(db_path: Path | None = None, *, echo: bool = False) -> Engine:
    """Create the engine and all tables. Idempotent.

    Parent directories of *db_path* are created as needed.
    """
    if db_path is not None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path, echo=echo)
    metadata.create_all(engine)
    return engine
