"""crudkit — schema-driven entity lifecycle services.

Quick start::

    from crudkit import CrudService, FieldSpec, MemoryStorage, Schema
    from crudkit.domain.validators import required

    schema = Schema("Contact", {
        "_id": FieldSpec(str),
        "name": FieldSpec(str, validators=[required]),
    })
    contacts = CrudService("Contact", MemoryStorage(), schema)
    saved = await contacts.create({"name": "Paul"})
"""

from crudkit.domain.schema import ArrayOf, FieldSpec, Schema
from crudkit.errors import (
    ConfigurationError,
    CrudError,
    EntityNotFoundError,
    HookError,
    InfraError,
    MissingIdentifierError,
    StorageError,
    ValidationError,
)
from crudkit.events import Event, EventNotifier, hookimpl
from crudkit.options import FindOptions, OperationOptions
from crudkit.pipeline.hooks import Phase
from crudkit.services import CrudService, create_service
from crudkit.storage import MemoryStorage, SqlStorage, StorageAdapter

__version__ = "0.1.0"

__all__ = [
    "ArrayOf",
    "ConfigurationError",
    "CrudError",
    "CrudService",
    "EntityNotFoundError",
    "Event",
    "EventNotifier",
    "FieldSpec",
    "FindOptions",
    "HookError",
    "InfraError",
    "MissingIdentifierError",
    "OperationOptions",
    "Phase",
    "Schema",
    "StorageAdapter",
    "StorageError",
    "SqlStorage",
    "ValidationError",
    "create_service",
    "hookimpl",
]
