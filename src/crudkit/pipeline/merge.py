"""Merge Engine — partial-update reconciliation.

Two-stage scoping:

1. ``merge_for_validation``: overlay the patch on a copy of the stored
   entity so validators see a complete, coherent object.
2. ``keys_to_write``: after validation, send only the keys the caller
   named in the patch, re-sourced from the validated (cast) values.

Fields pulled in from storage purely as validation context are never
written back.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from crudkit.errors import MissingIdentifierError


def require_identifier(patch: Mapping[str, Any], id_field: str) -> Any:
    """Return the patch's identifier, rejecting missing or empty values."""
    entity_id = patch.get(id_field)
    if entity_id is None or entity_id == "":
        raise MissingIdentifierError(id_field)
    return entity_id


def merge_for_validation(stored: Mapping[str, Any], patch: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay *patch* on a deep copy of *stored*. Patch values win."""
    merged = copy.deepcopy(dict(stored))
    merged.update(copy.deepcopy(dict(patch)))
    return merged


def keys_to_write(patch: Mapping[str, Any], validated: Mapping[str, Any]) -> dict[str, Any]:
    """Limit *validated* to the keys of the original *patch*.

    Patch keys that did not survive stripping or persist-tag projection are
    dropped rather than written as empty values.
    """
    return {key: validated[key] for key in patch if key in validated}
