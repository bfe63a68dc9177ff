"""Schema collaborator — typed fields, defaults, casting and validation.

A :class:`Schema` is a named mapping of field name to :class:`FieldSpec`.
Field types are plain Python types (``str``, ``int``, ``float``,
``bool``, ``datetime``), another :class:`Schema` for nested entities, or
:class:`ArrayOf` for lists. The service layer only relies on:

- ``make_default()`` / ``strip_unknown_properties()`` / ``cast()``
- ``cast_property()`` for identifier casting
- ``validate()`` returning a complete field → message mapping
- ``properties`` exposing each field's tags and type

Tag scoping lives in :mod:`crudkit.pipeline.projection`, not here.
"""

from __future__ import annotations

import copy
import inspect
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import ConfigDict, PydanticUserError, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from crudkit.domain.validators import Validator

logger = logging.getLogger(__name__)

Entity = dict[str, Any]
ErrorMap = dict[str, Any]

_CAST_CONFIG = ConfigDict(coerce_numbers_to_str=True)
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


class _Missing:
    """Sentinel for "no default declared" (``None`` is a valid default)."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class ArrayOf:
    """List field whose items are cast (and, for schemas, validated) as *item_type*."""

    item_type: Any


@dataclass(frozen=True, eq=False)
class FieldSpec:
    """Declaration of one schema field.

    Attributes:
        type: Semantic type used for casting.
        tags: Labels marking which views the field belongs to.
        default: Value (or zero-argument callable) used by ``make_default``.
        validators: Either a list (the ``"all"`` set) or a mapping of
            validation-set name to list.
        name: Human-readable label for messages. Derived from the key if unset.
    """

    type: Any = object
    tags: tuple[str, ...] = ()
    default: Any = MISSING
    validators: Sequence[Validator] | Mapping[str, Sequence[Validator]] = ()
    name: str | None = None

    def __post_init__(self) -> None:
        tags = (self.tags,) if isinstance(self.tags, str) else tuple(self.tags)
        object.__setattr__(self, "tags", tags)

    @property
    def sub_schema(self) -> Schema | None:
        """Nested schema for ``Schema`` or ``ArrayOf(Schema)`` fields."""
        if isinstance(self.type, Schema):
            return self.type
        if isinstance(self.type, ArrayOf) and isinstance(self.type.item_type, Schema):
            return self.type.item_type
        return None

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def display_name(self, key: str) -> str:
        if self.name:
            return self.name
        words = _CAMEL_BOUNDARY.sub(r"\1 \2", key).replace("_", " ").split()
        return " ".join(w[:1].upper() + w[1:] for w in words)

    def validators_for(self, validation_set: str) -> Sequence[Validator]:
        if isinstance(self.validators, Mapping):
            return self.validators.get(validation_set, ())
        if validation_set == "all":
            return self.validators
        return ()

    def make_default(self) -> Any:
        if self.default is not MISSING:
            return self.default() if callable(self.default) else copy.deepcopy(self.default)
        if isinstance(self.type, Schema):
            return self.type.make_default()
        if isinstance(self.type, ArrayOf):
            return []
        return None


class Schema:
    """Named set of :class:`FieldSpec` declarations.

    Usage::

        contact = Schema(
            "Contact",
            {
                "_id": FieldSpec(str, tags=["a", "b"]),
                "name": FieldSpec(str, tags=["a"], validators=[required]),
            },
        )
    """

    def __init__(self, name: str, properties: Mapping[str, FieldSpec | Mapping[str, Any]]) -> None:
        self.name = name
        self.properties: dict[str, FieldSpec] = {
            key: spec if isinstance(spec, FieldSpec) else FieldSpec(**spec)
            for key, spec in properties.items()
        }

    def __repr__(self) -> str:
        return f"Schema({self.name!r}, fields={list(self.properties)})"

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    def make_default(self, entity: Mapping[str, Any] | None = None) -> Entity:
        """Return a new entity with every missing field set to its default."""
        source = entity or {}
        result: Entity = {}
        for key, spec in self.properties.items():
            if key in source:
                result[key] = source[key]
            else:
                result[key] = spec.make_default()
        return result

    def strip_unknown_properties(self, entity: Mapping[str, Any]) -> Entity:
        """Drop keys the schema does not declare, recursing into nested entities."""
        result: Entity = {}
        for key, value in entity.items():
            spec = self.properties.get(key)
            if spec is None:
                continue
            sub = spec.sub_schema
            if sub is None:
                result[key] = value
            elif isinstance(value, Mapping):
                result[key] = sub.strip_unknown_properties(value)
            elif isinstance(value, list):
                result[key] = [
                    sub.strip_unknown_properties(item) if isinstance(item, Mapping) else item
                    for item in value
                ]
            else:
                result[key] = value
        return result

    # ------------------------------------------------------------------
    # Casting
    # ------------------------------------------------------------------

    def cast(self, entity: Mapping[str, Any]) -> Entity:
        """Cast every declared field to its type. Unknown keys pass through."""
        result: Entity = {}
        for key, value in entity.items():
            spec = self.properties.get(key)
            result[key] = value if spec is None else self.cast_property(spec.type, value)
        return result

    def cast_property(self, type_: Any, value: Any) -> Any:
        """Cast *value* to *type_*; values that cannot be cast are returned unchanged.

        Scalars go through pydantic in lax mode, so ``"42"`` becomes ``42``
        and unix timestamps become UTC datetimes. An empty string cast to a
        non-string type reads as ``None``.
        """
        if value is None:
            return None
        if isinstance(type_, Schema):
            return type_.cast(value) if isinstance(value, Mapping) else value
        if isinstance(type_, ArrayOf):
            if isinstance(value, list | tuple):
                return [self.cast_property(type_.item_type, item) for item in value]
            return value
        if type_ is object:
            return value
        if value == "" and type_ is not str:
            return None
        adapter = _adapter(type_)
        if adapter is None:
            return value
        try:
            return adapter.validate_python(value)
        except PydanticValidationError:
            return value

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def validate(
        self,
        entity: Mapping[str, Any],
        validation_set: str = "all",
        tag: str | None = None,
    ) -> ErrorMap:
        """Validate every field in scope and collect all failures.

        Only fields carrying *tag* are checked when a tag is given. The
        first failing validator of a field supplies its message; nested
        schemas report nested mappings (list items keyed by index).
        """
        errors: ErrorMap = {}
        for key, spec in self.properties.items():
            if tag is not None and not spec.has_tag(tag):
                continue
            message = await _run_validators(key, spec, entity, validation_set)
            if message:
                errors[key] = message
                continue
            sub = spec.sub_schema
            if sub is None:
                continue
            nested = await _validate_nested(sub, entity.get(key), validation_set, tag)
            if nested:
                errors[key] = nested
        return errors


async def _run_validators(
    key: str, spec: FieldSpec, entity: Mapping[str, Any], validation_set: str
) -> str | None:
    display_name = spec.display_name(key)
    for validator in spec.validators_for(validation_set):
        outcome = validator(key, display_name, entity)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if outcome:
            return str(outcome)
    return None


async def _validate_nested(
    schema: Schema, value: Any, validation_set: str, tag: str | None
) -> ErrorMap:
    if isinstance(value, Mapping):
        return await schema.validate(value, validation_set, tag)
    if not isinstance(value, list):
        return {}
    errors: ErrorMap = {}
    for index, item in enumerate(value):
        if not isinstance(item, Mapping):
            continue
        item_errors = await schema.validate(item, validation_set, tag)
        if item_errors:
            errors[str(index)] = item_errors
    return errors


@lru_cache(maxsize=None)
def _adapter(type_: Any) -> TypeAdapter[Any] | None:
    try:
        return TypeAdapter(type_, config=_CAST_CONFIG)
    except PydanticUserError:
        logger.debug("No caster for field type %r", type_)
        return None
