"""SQLite document store: engine, tables, and ID counters via SQLAlchemy Core."""

from crudkit.storage.database.counters import next_sequential_id
from crudkit.storage.database.engine import create_db_engine, init_database
from crudkit.storage.database.schema import documents, id_counters, metadata

__all__ = [
    "create_db_engine",
    "documents",
    "id_counters",
    "init_database",
    "metadata",
    "next_sequential_id",
]
