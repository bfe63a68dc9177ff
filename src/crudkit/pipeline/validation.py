"""Validation Gate — runs schema validation and gates the pipeline.

The gate validates exactly the fields the validate-scope selects and
aggregates every failure into one :class:`~crudkit.errors.ValidationError`.
Validation scope is independent of persistence scope: narrowing only the
persist tag never narrows what gets validated.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from crudkit.errors import ValidationError

if TYPE_CHECKING:
    from crudkit.domain.schema import Schema

logger = logging.getLogger(__name__)


async def validate_entity(
    schema: Schema,
    entity: Mapping[str, Any],
    validation_set: str = "all",
    tag: str | None = None,
) -> None:
    """Raise :class:`ValidationError` if *entity* fails validation under *tag*.

    Errors raised by the schema itself (not field failures) propagate
    unchanged as infra errors.
    """
    errors = await schema.validate(entity, validation_set, tag)
    if errors:
        logger.debug(
            "Validation failed for %s: %d field(s) (tag=%s)", schema.name, len(errors), tag
        )
        raise ValidationError(dict(errors), payload=entity)
