"""SQLAlchemy Core table definitions for the document store.

Entities are stored as JSON text, one row per (collection, entity_id).
``pk`` preserves insertion order for unsorted ``find`` results.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, Table, Text, UniqueConstraint

metadata = MetaData()

documents = Table(
    "documents",
    metadata,
    Column("pk", Integer, primary_key=True, autoincrement=True),
    Column("collection", Text, nullable=False),
    Column("entity_id", Text, nullable=False),
    Column("document", Text, nullable=False),  # JSON object
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
    UniqueConstraint("collection", "entity_id"),
)

id_counters = Table(
    "id_counters",
    metadata,
    Column("collection", Text, primary_key=True),
    Column("next_value", Integer, nullable=False),
)
