"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, crudkit.toml only contains overrides.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel


class ServiceConfig(BaseModel):
    """[service] section."""

    model_config = {"frozen": True}

    ignore_tag_for_sub_schema: bool = False
    discover_subscribers: bool = False


class StorageConfig(BaseModel):
    """[storage] section.

    ``path`` is only used by the ``sqlite`` backend; no path means an
    in-memory SQLite database.
    """

    model_config = {"frozen": True}

    backend: Literal["memory", "sqlite"] = "memory"
    path: Path | None = None
    echo: bool = False


class LoggingConfig(BaseModel):
    """[logging] section."""

    model_config = {"frozen": True}

    verbose: bool = False
    log_json: bool = False
    telemetry: bool = False
