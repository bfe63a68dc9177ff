"""Field validators.

A validator is ``(key, display_name, entity) -> str | None``; returning a
message marks the field invalid. Async validators (returning an
awaitable) are awaited by :meth:`Schema.validate`.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Collection, Mapping
from typing import Any

Validator = Callable[[str, str, Mapping[str, Any]], Any]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def required(key: str, display_name: str, entity: Mapping[str, Any]) -> str | None:
    """Reject missing, ``None`` and empty-string values."""
    if _is_empty(entity.get(key)):
        return f"{display_name} is required"
    return None


def length(min_length: int = 0, max_length: int | None = None) -> Validator:
    """Bound the length of a string or list. Empty values pass."""

    def _validate(key: str, display_name: str, entity: Mapping[str, Any]) -> str | None:
        value = entity.get(key)
        if _is_empty(value):
            return None
        size = len(value)
        if size < min_length:
            return f"{display_name} must be at least {min_length} long"
        if max_length is not None and size > max_length:
            return f"{display_name} must be no more than {max_length} long"
        return None

    return _validate


def one_of(values: Collection[Any]) -> Validator:
    """Restrict a value to a fixed set. Empty values pass."""
    allowed = list(values)

    def _validate(key: str, display_name: str, entity: Mapping[str, Any]) -> str | None:
        value = entity.get(key)
        if _is_empty(value) or value in allowed:
            return None
        return f"{display_name} must be one of: {', '.join(str(v) for v in allowed)}"

    return _validate


def matches(pattern: str | re.Pattern[str], message: str | None = None) -> Validator:
    """Require a string value to match *pattern*. Empty values pass."""
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern

    def _validate(key: str, display_name: str, entity: Mapping[str, Any]) -> str | None:
        value = entity.get(key)
        if _is_empty(value):
            return None
        if isinstance(value, str) and compiled.search(value):
            return None
        return message or f"{display_name} is not in the correct format"

    return _validate


def email(key: str, display_name: str, entity: Mapping[str, Any]) -> str | None:
    value = entity.get(key)
    if _is_empty(value):
        return None
    if isinstance(value, str) and _EMAIL_RE.match(value):
        return None
    return f"{display_name} must be a valid email address"


def instance_of(kind: type, message: str | None = None) -> Validator:
    """Reject values that did not cast to *kind*. Empty values pass."""

    def _validate(key: str, display_name: str, entity: Mapping[str, Any]) -> str | None:
        value = entity.get(key)
        if _is_empty(value) or isinstance(value, kind):
            return None
        return message or f"{display_name} must be a valid {kind.__name__}"

    return _validate
