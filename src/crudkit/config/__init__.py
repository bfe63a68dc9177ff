"""Configuration layer — settings, config discovery, and logging setup."""

from crudkit.config.logging import configure_logging
from crudkit.config.models import LoggingConfig, ServiceConfig, StorageConfig
from crudkit.config.settings import CrudSettings

__all__ = ["CrudSettings", "LoggingConfig", "ServiceConfig", "StorageConfig", "configure_logging"]
