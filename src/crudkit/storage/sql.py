"""SQL storage adapter on SQLAlchemy Core.

Each service gets its own *collection* inside the shared ``documents``
table. Documents are JSON-encoded; ``datetime`` values are written as ISO
strings and read back as strings. Queries are evaluated in Python with
the same equality semantics as :class:`~crudkit.storage.memory.MemoryStorage`;
``iter_find`` streams the collection in batches of ``STREAM_BATCH_SIZE``.

Calls are blocking; SQLite keeps them short enough to run on the event
loop directly.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from crudkit.errors import StorageError
from crudkit.options import FindOptions
from crudkit.storage.base import iter_page, matches
from crudkit.storage.database.counters import next_sequential_id
from crudkit.storage.database.schema import documents

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

STREAM_BATCH_SIZE = 100


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, set | frozenset | tuple):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dump(entity: Mapping[str, Any]) -> str:
    return json.dumps(entity, default=_json_default)


def _load(raw: str) -> dict[str, Any]:
    return json.loads(raw)


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    """Re-raise driver errors as :class:`StorageError`."""
    try:
        yield
    except IntegrityError as exc:
        raise StorageError(f"{action} violates a storage constraint: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        raise StorageError(f"{action} failed: {exc}") from exc


class SqlStorage:
    """Document-per-row :class:`~crudkit.storage.base.StorageAdapter`.

    Parameters:
        engine: Engine with the ``documents`` and ``id_counters`` tables.
        collection: Logical table name for this service's entities.
        id_field: Name of the identifier field.
        id_type: ``str`` or ``int``; controls generated identifiers.
    """

    def __init__(
        self,
        engine: Engine,
        collection: str,
        *,
        id_field: str = "_id",
        id_type: type = str,
    ) -> None:
        if id_type not in (str, int):
            msg = f"SqlStorage supports str or int identifiers, got {id_type!r}"
            raise ValueError(msg)
        self._engine = engine
        self.collection = collection
        self.id_field = id_field
        self.id_type = id_type

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, entity: dict[str, Any]) -> dict[str, Any]:
        stored = dict(entity)
        now = _now_iso()
        with _translate_errors(f"create in {self.collection}"), self._engine.begin() as conn:
            entity_id = stored.get(self.id_field)
            if entity_id is None or entity_id == "":
                entity_id = self._claim_id(conn)
                stored[self.id_field] = entity_id
            raw = _dump(stored)
            conn.execute(
                insert(documents).values(
                    collection=self.collection,
                    entity_id=str(entity_id),
                    document=raw,
                    created=now,
                    modified=now,
                )
            )
        logger.debug("Created %s %s=%r", self.collection, self.id_field, entity_id)
        return _load(raw)

    async def update(self, entity: dict[str, Any]) -> dict[str, Any] | None:
        entity_id = entity.get(self.id_field)
        if entity_id is None:
            raise StorageError(f"Cannot update without {self.id_field}")
        with _translate_errors(f"update in {self.collection}"), self._engine.begin() as conn:
            row = self._select_row(conn, entity_id)
            if row is None:
                return None
            merged = _load(row.document)
            merged.update(entity)
            raw = _dump(merged)
            conn.execute(
                update(documents)
                .where(documents.c.pk == row.pk)
                .values(document=raw, modified=_now_iso())
            )
        return _load(raw)

    async def delete(self, entity_id: Any) -> None:
        with _translate_errors(f"delete in {self.collection}"), self._engine.begin() as conn:
            conn.execute(
                delete(documents).where(
                    documents.c.collection == self.collection,
                    documents.c.entity_id == str(entity_id),
                )
            )

    async def delete_many(self, query: Mapping[str, Any]) -> None:
        with _translate_errors(f"delete_many in {self.collection}"), self._engine.begin() as conn:
            doomed = [pk for pk, entity in self._scan(conn) if matches(query, entity)]
            if doomed:
                conn.execute(delete(documents).where(documents.c.pk.in_(doomed)))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read(self, entity_id: Any) -> dict[str, Any] | None:
        with _translate_errors(f"read from {self.collection}"), self._engine.connect() as conn:
            row = self._select_row(conn, entity_id)
        return None if row is None else _load(row.document)

    async def find(
        self, query: Mapping[str, Any], options: FindOptions | None = None
    ) -> list[dict[str, Any]]:
        with _translate_errors(f"find in {self.collection}"), self._engine.connect() as conn:
            found = (entity for _, entity in self._scan(conn) if matches(query, entity))
            return list(iter_page(found, options))

    async def iter_find(
        self, query: Mapping[str, Any], options: FindOptions | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        found = (entity for entity in self._stream() if matches(query, entity))
        for entity in iter_page(found, options):
            yield entity

    async def count(self, query: Mapping[str, Any]) -> int:
        with _translate_errors(f"count in {self.collection}"), self._engine.connect() as conn:
            return sum(1 for _, entity in self._scan(conn) if matches(query, entity))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _select_row(self, conn: Connection, entity_id: Any) -> Any:
        return conn.execute(
            select(documents.c.pk, documents.c.document).where(
                documents.c.collection == self.collection,
                documents.c.entity_id == str(entity_id),
            )
        ).first()

    def _claim_id(self, conn: Connection) -> Any:
        # skip counter values already taken by caller-supplied ids
        while True:
            candidate = self.id_type(next_sequential_id(conn, self.collection))
            if self._select_row(conn, candidate) is None:
                return candidate

    def _scan(self, conn: Connection) -> Iterator[tuple[int, dict[str, Any]]]:
        result = conn.execute(
            select(documents.c.pk, documents.c.document)
            .where(documents.c.collection == self.collection)
            .order_by(documents.c.pk)
        )
        for row in result:
            yield row.pk, _load(row.document)

    def _stream(self) -> Iterator[dict[str, Any]]:
        """Yield the collection in ``pk`` order, one short read per batch.

        No connection is held between batches, so callers may write to the
        collection while they consume the stream.
        """
        last_pk = 0
        while True:
            with _translate_errors(f"find in {self.collection}"), self._engine.connect() as conn:
                rows = conn.execute(
                    select(documents.c.pk, documents.c.document)
                    .where(documents.c.collection == self.collection, documents.c.pk > last_pk)
                    .order_by(documents.c.pk)
                    .limit(STREAM_BATCH_SIZE)
                ).fetchall()
            if not rows:
                return
            for row in rows:
                yield _load(row.document)
            if len(rows) < STREAM_BATCH_SIZE:
                return
            last_pk = rows[-1].pk
