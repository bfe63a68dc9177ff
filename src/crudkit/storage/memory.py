"""In-memory storage adapter.

Entities live in a dict keyed by identifier. Everything is deep-copied on
the way in and out so callers never alias stored state. Identifiers are
sequential (``"1"``, ``"2"``, ... for ``str`` ids).
"""

from __future__ import annotations

import copy
import itertools
import logging
from collections.abc import AsyncIterator, Iterator, Mapping
from typing import Any

from crudkit.errors import StorageError
from crudkit.options import FindOptions
from crudkit.storage.base import iter_page, matches

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Dict-backed :class:`~crudkit.storage.base.StorageAdapter`.

    Parameters:
        id_field: Name of the identifier field.
        id_type: ``str`` or ``int``; controls generated identifiers.
    """

    def __init__(self, id_field: str = "_id", id_type: type = str) -> None:
        if id_type not in (str, int):
            msg = f"MemoryStorage supports str or int identifiers, got {id_type!r}"
            raise ValueError(msg)
        self.id_field = id_field
        self.id_type = id_type
        self._entities: dict[Any, dict[str, Any]] = {}
        self._sequence = itertools.count(1)

    def __len__(self) -> int:
        return len(self._entities)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, entity: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(entity)
        entity_id = stored.get(self.id_field)
        if entity_id is None or entity_id == "":
            entity_id = self._next_id()
            stored[self.id_field] = entity_id
        if entity_id in self._entities:
            raise StorageError(f"Duplicate {self.id_field}: {entity_id!r}")
        self._entities[entity_id] = stored
        logger.debug("Created %s=%r", self.id_field, entity_id)
        return copy.deepcopy(stored)

    async def update(self, entity: dict[str, Any]) -> dict[str, Any] | None:
        entity_id = entity.get(self.id_field)
        if entity_id is None:
            raise StorageError(f"Cannot update without {self.id_field}")
        stored = self._entities.get(entity_id)
        if stored is None:
            return None
        stored.update(copy.deepcopy(entity))
        return copy.deepcopy(stored)

    async def delete(self, entity_id: Any) -> None:
        self._entities.pop(entity_id, None)

    async def delete_many(self, query: Mapping[str, Any]) -> None:
        doomed = [key for key, entity in self._entities.items() if matches(query, entity)]
        for key in doomed:
            del self._entities[key]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read(self, entity_id: Any) -> dict[str, Any] | None:
        stored = self._entities.get(entity_id)
        return None if stored is None else copy.deepcopy(stored)

    async def find(
        self, query: Mapping[str, Any], options: FindOptions | None = None
    ) -> list[dict[str, Any]]:
        return [copy.deepcopy(e) for e in self._select(query, options)]

    async def iter_find(
        self, query: Mapping[str, Any], options: FindOptions | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        for entity in self._select(query, options):
            yield copy.deepcopy(entity)

    async def count(self, query: Mapping[str, Any]) -> int:
        return sum(1 for entity in self._entities.values() if matches(query, entity))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _select(
        self, query: Mapping[str, Any], options: FindOptions | None
    ) -> Iterator[dict[str, Any]]:
        return iter_page((e for e in self._scan() if matches(query, e)), options)

    def _scan(self) -> Iterator[dict[str, Any]]:
        # keys are snapshotted; entities deleted mid-scan are skipped
        for key in list(self._entities):
            entity = self._entities.get(key)
            if entity is not None:
                yield entity

    def _next_id(self) -> Any:
        while True:
            value = next(self._sequence)
            candidate = value if self.id_type is int else str(value)
            if candidate not in self._entities:
                return candidate
