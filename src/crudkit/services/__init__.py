"""Service layer — the operation controller and its wiring.

Services may import from domain, pipeline, events, storage, and config.
"""

from crudkit.services.crud import CrudService
from crudkit.services.factory import build_storage, configure_runtime, create_service

__all__ = ["CrudService", "build_storage", "configure_runtime", "create_service"]
