"""Error taxonomy for crudkit services.

Three families:

- :class:`ConfigurationError` — fatal, raised while wiring a service.
- :class:`InfraError` — anything that is not a field-level validation
  failure (missing identifier, unknown entity, hook or storage failure).
- :class:`ValidationError` — the aggregated field → message mapping
  produced by the validation gate, plus the in-flight payload.

INVARIANT: Errors are never retried by the service layer.
"""

from __future__ import annotations

from typing import Any


class CrudError(Exception):
    """Base class for every error raised by crudkit."""


class ConfigurationError(CrudError):
    """The service cannot be built from the given schema/storage/settings."""


# ---------------------------------------------------------------------------
# Infra errors
# ---------------------------------------------------------------------------


class InfraError(CrudError):
    """Non-validation failure reported straight back to the caller."""


class MissingIdentifierError(InfraError):
    """A partial update was submitted without its identifier field."""

    def __init__(self, id_field: str) -> None:
        super().__init__(f"object have not ID property '{id_field}'")
        self.id_field = id_field


class EntityNotFoundError(InfraError):
    """No stored entity exists for the requested identifier."""

    def __init__(self, id_field: str, entity_id: Any) -> None:
        super().__init__(f"Couldn't find object with an {id_field} of {entity_id}")
        self.id_field = id_field
        self.entity_id = entity_id


class HookError(InfraError):
    """A pre-processor failed; the remaining processors were skipped.

    ``payload`` is the object the failing processor received. The original
    exception is chained as ``__cause__``.
    """

    def __init__(self, phase: str, payload: Any, message: str) -> None:
        super().__init__(f"{phase} hook failed: {message}")
        self.phase = phase
        self.payload = payload


class StorageError(InfraError):
    """A storage adapter could not complete the requested operation."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(CrudError):
    """Field-level validation failed.

    Attributes:
        errors: Complete mapping of field name to message. Nested schemas
            report nested mappings.
        payload: Best-known intermediate entity at the time of failure.
    """

    def __init__(self, errors: dict[str, Any], payload: Any = None) -> None:
        super().__init__("Validation Error")
        self.errors = errors
        self.payload = payload
