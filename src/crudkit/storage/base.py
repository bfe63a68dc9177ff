"""StorageAdapter protocol and shared query helpers.

Adapters persist plain entity dicts. The query language is deliberately
small: a query mapping matches an entity when every key is present and
equal (``{}`` matches everything).
"""

from __future__ import annotations

import itertools
from collections.abc import AsyncIterator, Iterable, Iterator, Mapping
from datetime import date
from typing import Any, Protocol, runtime_checkable

from crudkit.options import FindOptions


@runtime_checkable
class StorageAdapter(Protocol):
    """Persistence collaborator consumed by :class:`~crudkit.services.crud.CrudService`.

    ``update`` merges the submitted keys into the stored entity and returns
    the stored result, or ``None`` when nothing has that identifier.
    ``read`` returns ``None`` for unknown identifiers.
    """

    id_field: str
    id_type: type

    async def create(self, entity: dict[str, Any]) -> dict[str, Any]: ...

    async def read(self, entity_id: Any) -> dict[str, Any] | None: ...

    async def update(self, entity: dict[str, Any]) -> dict[str, Any] | None: ...

    async def delete(self, entity_id: Any) -> None: ...

    async def delete_many(self, query: Mapping[str, Any]) -> None: ...

    async def find(
        self, query: Mapping[str, Any], options: FindOptions | None = None
    ) -> list[dict[str, Any]]: ...

    def iter_find(
        self, query: Mapping[str, Any], options: FindOptions | None = None
    ) -> AsyncIterator[dict[str, Any]]: ...

    async def count(self, query: Mapping[str, Any]) -> int: ...


def matches(query: Mapping[str, Any], entity: Mapping[str, Any]) -> bool:
    """True when every key in *query* is present in *entity* with an equal value."""
    return all(key in entity and entity[key] == value for key, value in query.items())


def sort_key(value: Any) -> tuple[int, Any]:
    """Order values of mixed types without comparing across types.

    ``None`` sorts first, then numbers, strings and dates. Anything else
    follows, ordered by type name and ``repr``.
    """
    if value is None:
        return (0, 0)
    if isinstance(value, bool | int | float):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, date):
        return (3, value.isoformat())
    return (4, (type(value).__name__, repr(value)))


def iter_page(
    entities: Iterable[dict[str, Any]], options: FindOptions | None
) -> Iterator[dict[str, Any]]:
    """Sort, skip and limit *entities* according to *options*.

    Sorting is applied key by key, least significant last. Without a sort
    the source is consumed only as far as the requested page reaches.
    """
    if options is None:
        return iter(entities)
    if options.sort:
        ordered = list(entities)
        for key, direction in reversed(list(options.sort.items())):
            ordered.sort(key=lambda e, k=key: sort_key(e.get(k)), reverse=direction == -1)
        entities = ordered
    stop = None if options.limit is None else options.skip + options.limit
    return itertools.islice(entities, options.skip, stop)


def apply_find_options(
    entities: Iterable[dict[str, Any]], options: FindOptions | None
) -> list[dict[str, Any]]:
    return list(iter_page(entities, options))
