"""Sequential identifier generation per collection.

The caller owns the transaction — pass a ``Connection`` obtained from
``engine.begin()`` so the counter increment commits or rolls back with
the insert that consumes it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import insert, select, update

from crudkit.storage.database.schema import id_counters

if TYPE_CHECKING:
    from sqlalchemy import Connection


def next_sequential_id(conn: Connection, collection: str) -> int:
    """Claim the next identifier for *collection*, starting at 1.

    Args:
        conn: Active SQLAlchemy connection (caller owns the transaction).
        collection: Collection whose counter is incremented.

    Returns:
        The claimed value.
    """
    row = conn.execute(
        select(id_counters.c.next_value).where(id_counters.c.collection == collection)
    ).first()

    if row is None:
        conn.execute(insert(id_counters).values(collection=collection, next_value=2))
        return 1

    current_value: int = row.next_value
    conn.execute(
        update(id_counters)
        .where(id_counters.c.collection == collection)
        .values(next_value=current_value + 1)
    )
    return current_value
