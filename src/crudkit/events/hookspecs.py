"""Pluggy hook specifications for crudkit lifecycle events.

One hook per completed mutation. Subscribers implement any subset of
these with ``@hookimpl``; pluggy matches arguments by name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from crudkit.options import OperationOptions

PROJECT_NAME = "crudkit"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class CrudHookSpec:
    """Hook specifications for crudkit services."""

    @hookspec
    def crud_create(self, entity: dict[str, Any], options: OperationOptions) -> None:
        """Called after an entity is created."""

    @hookspec
    def crud_update(self, entity: dict[str, Any], options: OperationOptions) -> None:
        """Called after a full update."""

    @hookspec
    def crud_partial_update(
        self,
        entity: dict[str, Any],
        original: dict[str, Any],
        options: OperationOptions,
    ) -> None:
        """Called after a partial update with the entity as stored before the call."""

    @hookspec
    def crud_delete(self, entity_id: Any, options: OperationOptions) -> None:
        """Called after an entity is deleted."""

    @hookspec
    def crud_delete_many(self, query: dict[str, Any]) -> None:
        """Called after a bulk delete."""
