"""Event layer — per-service lifecycle notifications via pluggy.

INVARIANT: Subscriber failures are warnings, never errors.
"""

from crudkit.events.hookspecs import CrudHookSpec, hookimpl
from crudkit.events.notifier import Event, EventNotifier

__all__ = ["CrudHookSpec", "Event", "EventNotifier", "hookimpl"]
