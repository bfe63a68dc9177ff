"""Domain layer — the schema collaborator and its validators.

This layer depends only on the standard library.
It must never import from pipeline, services, storage, or config.
"""

from crudkit.domain.schema import MISSING, ArrayOf, Entity, ErrorMap, FieldSpec, Schema

__all__ = ["MISSING", "ArrayOf", "Entity", "ErrorMap", "FieldSpec", "Schema"]
