"""Event Notifier — per-service publish point built on pluggy.

Each service owns one :class:`EventNotifier` wrapping a private
``pluggy.PluginManager``; nothing is process-global. Subscribers are
either plugin objects carrying ``@hookimpl`` methods or plain callables
registered through :meth:`EventNotifier.on`.

Delivery is synchronous and in registration order. The notifier calls
each subscriber itself so one failing subscriber cannot starve the rest.
Hook wrappers are refused at registration and skipped on discovery.

INVARIANT: Subscriber failures are warnings, never errors. The mutation
that triggered the event has already been persisted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

import pluggy

from crudkit.events.hookspecs import PROJECT_NAME, CrudHookSpec, hookimpl

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "crudkit.events"


class Event(StrEnum):
    """Events emitted once per completed mutation."""

    CREATE = "create"
    UPDATE = "update"
    PARTIAL_UPDATE = "partialUpdate"
    DELETE = "delete"
    DELETE_MANY = "deleteMany"


HOOK_NAMES: dict[Event, str] = {
    Event.CREATE: "crud_create",
    Event.UPDATE: "crud_update",
    Event.PARTIAL_UPDATE: "crud_partial_update",
    Event.DELETE: "crud_delete",
    Event.DELETE_MANY: "crud_delete_many",
}


class _HandlerRelay:
    """Adapts a plain callable to a single event.

    The handler receives the hook arguments positionally, in the order the
    hook specification declares them.
    """

    event: Event

    def __init__(self, handler: Callable[..., Any]) -> None:
        self.handler = handler


class _CreateRelay(_HandlerRelay):
    event = Event.CREATE

    @hookimpl
    def crud_create(self, entity: dict[str, Any], options: Any) -> None:
        self.handler(entity, options)


class _UpdateRelay(_HandlerRelay):
    event = Event.UPDATE

    @hookimpl
    def crud_update(self, entity: dict[str, Any], options: Any) -> None:
        self.handler(entity, options)


class _PartialUpdateRelay(_HandlerRelay):
    event = Event.PARTIAL_UPDATE

    @hookimpl
    def crud_partial_update(
        self, entity: dict[str, Any], original: dict[str, Any], options: Any
    ) -> None:
        self.handler(entity, original, options)


class _DeleteRelay(_HandlerRelay):
    event = Event.DELETE

    @hookimpl
    def crud_delete(self, entity_id: Any, options: Any) -> None:
        self.handler(entity_id, options)


class _DeleteManyRelay(_HandlerRelay):
    event = Event.DELETE_MANY

    @hookimpl
    def crud_delete_many(self, query: dict[str, Any]) -> None:
        self.handler(query)


_RELAYS: dict[Event, type[_HandlerRelay]] = {
    relay.event: relay
    for relay in (_CreateRelay, _UpdateRelay, _PartialUpdateRelay, _DeleteRelay, _DeleteManyRelay)
}


class EventNotifier:
    """Subscription registry and synchronous dispatcher for one service."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(CrudHookSpec)

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def register(self, plugin: object, name: str | None = None) -> None:
        """Subscribe a plugin object carrying ``@hookimpl`` methods.

        Raises:
            pluggy.PluginValidationError: An implementation does not match its
                hook specification, or is a ``wrapper``/``hookwrapper``.
        """
        self._pm.register(plugin, name=name)
        wrapped = self._wrapped_hooks(plugin)
        if wrapped:
            self._pm.unregister(plugin)
            msg = f"Event subscribers cannot be hook wrappers: {', '.join(wrapped)}"
            raise pluggy.PluginValidationError(plugin, msg)
        logger.debug("Registered event subscriber: %s", name or plugin.__class__.__name__)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def on(self, event: Event | str, handler: Callable[..., Any]) -> object:
        """Subscribe *handler* to *event*. Returns a handle for :meth:`unregister`."""
        relay = _RELAYS[Event(event)](handler)
        self._pm.register(relay)
        return relay

    def discover(self) -> list[str]:
        """Load subscribers advertised under the ``crudkit.events`` entry-point group."""
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        for plugin in self._pm.get_plugins():
            wrapped = self._wrapped_hooks(plugin)
            if wrapped:
                name = self._pm.get_name(plugin)
                self._pm.unregister(plugin)
                count -= 1
                logger.warning("Skipped event subscriber %s: wraps %s", name, ", ".join(wrapped))
        logger.debug("Loaded %d event subscriber(s) from entry points", count)
        return self.list_subscriber_names()

    def list_subscriber_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def _wrapped_hooks(self, plugin: object) -> list[str]:
        callers = self._pm.get_hookcallers(plugin) or []
        return sorted(
            caller.name
            for caller in callers
            for impl in caller.get_hookimpls()
            if impl.plugin is plugin and (impl.wrapper or impl.hookwrapper)
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def emit(self, event: Event | str, **payload: Any) -> int:
        """Deliver *event* to every subscriber. Returns the number that succeeded."""
        resolved = Event(event)
        hook_name = HOOK_NAMES[resolved]
        caller = getattr(self._pm.hook, hook_name)

        delivered = 0
        for impl in _call_order(caller.get_hookimpls()):
            args = [payload[name] for name in impl.argnames]
            try:
                impl.function(*args)
            except Exception:
                logger.warning(
                    "Event subscriber %s failed on %s", impl.plugin_name, resolved, exc_info=True
                )
                continue
            delivered += 1
        return delivered


def _call_order(impls: list[Any]) -> list[Any]:
    """Registration order, honouring ``tryfirst``/``trylast``."""
    return sorted(impls, key=lambda i: 0 if i.tryfirst else 2 if i.trylast else 1)
