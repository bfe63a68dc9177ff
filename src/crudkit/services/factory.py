"""Service construction from settings.

Bridges :class:`~crudkit.config.settings.CrudSettings` to concrete
storage adapters and :class:`~crudkit.services.crud.CrudService`
instances, and applies the logging/telemetry section.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from crudkit.config.logging import configure_logging
from crudkit.config.settings import CrudSettings
from crudkit.services.crud import CrudService
from crudkit.services.telemetry import disable_telemetry, enable_telemetry
from crudkit.storage.database.engine import init_database
from crudkit.storage.memory import MemoryStorage
from crudkit.storage.sql import SqlStorage

if TYPE_CHECKING:
    from crudkit.domain.schema import Schema
    from crudkit.storage.base import StorageAdapter

logger = logging.getLogger(__name__)


def configure_runtime(settings: CrudSettings) -> None:
    """Apply the ``[logging]`` section: log routing and telemetry."""
    configure_logging(
        verbose=settings.logging.verbose,
        log_json=settings.logging.log_json,
        telemetry=settings.logging.telemetry,
    )
    if settings.logging.telemetry:
        enable_telemetry()
    else:
        disable_telemetry()


def build_storage(
    settings: CrudSettings,
    collection: str,
    *,
    id_field: str = "_id",
    id_type: type = str,
) -> StorageAdapter:
    """Create the storage adapter selected by ``[storage] backend``.

    A relative sqlite ``path`` is resolved against the directory of the
    config file it came from.
    """
    config = settings.storage
    if config.backend == "memory":
        return MemoryStorage(id_field=id_field, id_type=id_type)

    db_path = config.path
    if db_path is not None and not db_path.is_absolute() and settings.config_path is not None:
        db_path = settings.config_path.parent / db_path
    engine = init_database(db_path, echo=config.echo)
    logger.debug("Opened sqlite storage for %s at %s", collection, db_path or ":memory:")
    return SqlStorage(engine, collection, id_field=id_field, id_type=id_type)


def create_service(
    name: str,
    schema: Schema,
    *,
    settings: CrudSettings | None = None,
    storage: StorageAdapter | None = None,
    id_field: str = "_id",
    id_type: type = str,
    slug: str | None = None,
    plural: str | None = None,
) -> CrudService:
    """Build a :class:`CrudService` wired according to *settings*.

    When *storage* is given it is used as-is and the ``[storage]`` section
    is ignored. Settings are discovered from ``crudkit.toml`` when omitted.
    """
    settings = settings or CrudSettings.load()
    service_slug = slug or name.lower().replace(" ", "")
    if storage is None:
        storage = build_storage(settings, service_slug, id_field=id_field, id_type=id_type)

    service = CrudService(
        name,
        storage,
        schema,
        slug=service_slug,
        plural=plural,
        ignore_tag_for_sub_schema=settings.service.ignore_tag_for_sub_schema,
    )
    if settings.service.discover_subscribers:
        service.events.discover()
    return service
