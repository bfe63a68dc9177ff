"""Tag Projector — decides which fields take part in a pipeline stage.

Given an entity and a tag, keeps only fields whose spec carries that tag.
Nested schema values are projected recursively under the same tag unless
``ignore_tag_for_sub_schema`` is set, in which case nested-schema fields
bypass the tag check and are kept whole.

No defaults are generated here and nothing is ever raised: absent fields
simply stay absent.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from crudkit.domain.schema import Entity, Schema


def project(
    schema: Schema,
    entity: Mapping[str, Any],
    tag: str | None = None,
    ignore_tag_for_sub_schema: bool = False,
) -> Entity:
    """Return the fields of *entity* that participate under *tag*.

    With no tag every field passes and *entity* is returned as-is.
    """
    if tag is None:
        return entity  # type: ignore[return-value]

    projected: dict[str, Any] = {}
    for key, value in entity.items():
        spec = schema.properties.get(key)
        if spec is None:
            continue
        sub = spec.sub_schema
        if sub is not None and ignore_tag_for_sub_schema:
            projected[key] = value
            continue
        if not spec.has_tag(tag):
            continue
        projected[key] = value if sub is None else _project_nested(sub, value, tag)
    return projected


def _project_nested(schema: Schema, value: Any, tag: str) -> Any:
    if isinstance(value, Mapping):
        return project(schema, value, tag)
    if isinstance(value, list):
        return [project(schema, item, tag) if isinstance(item, Mapping) else item for item in value]
    return value

