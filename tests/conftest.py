"""Shared pytest fixtures and test helpers for crudkit tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from typing import Any

import pytest
import structlog
from sqlalchemy.engine import Engine

from crudkit.domain.schema import ArrayOf, FieldSpec, Schema
from crudkit.domain.validators import required
from crudkit.services.crud import CrudService
from crudkit.services.telemetry import disable_telemetry
from crudkit.storage.database.engine import init_database
from crudkit.storage.memory import MemoryStorage

CONTACT = {
    "name": "Paul",
    "email": "paul@serby.net",
    "mobile": None,
    "comments": [],
}


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _telemetry_off() -> Generator[None]:
    """Keep telemetry from leaking between tests."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo configure_logging() so caplog sees crudkit records again."""
    package = logging.getLogger("crudkit")
    spans = logging.getLogger("crudkit.telemetry")
    handlers, level, propagate = package.handlers[:], package.level, package.propagate
    spans_level = spans.level
    yield
    package.handlers = handlers
    package.setLevel(level)
    package.propagate = propagate
    spans.setLevel(spans_level)
    structlog.reset_defaults()


@pytest.fixture
def db_engine() -> Generator[Engine]:
    """In-memory SQLite engine with all tables created."""
    engine = init_database()
    try:
        yield engine
    finally:
        engine.dispose()


# ---------------------------------------------------------------------------
# Contact schema
# ---------------------------------------------------------------------------


def build_contact_schema(id_type: type = str) -> Schema:
    """Contact with tagged fields and a tagged comment sub-schema.

    Tags: ``_id`` a+b, ``name`` a, ``email`` b, ``mobile`` c,
    ``comments`` a (items: ``thread`` a, ``comment`` c).
    """
    comment = Schema(
        "Comment",
        {
            "thread": FieldSpec(str, tags=["a"]),
            "comment": FieldSpec(str, tags=["c"]),
        },
    )
    return Schema(
        "Contact",
        {
            "_id": FieldSpec(id_type, tags=["a", "b"]),
            "name": FieldSpec(str, tags=["a"], validators=[required]),
            "email": FieldSpec(str, tags=["b"], validators=[required]),
            "mobile": FieldSpec(str, tags=["c"]),
            "comments": FieldSpec(ArrayOf(comment), tags=["a"]),
        },
    )


@pytest.fixture
def contact_schema() -> Schema:
    return build_contact_schema()


@pytest.fixture
def make_contact_service() -> Callable[..., CrudService]:
    """Factory for a Contact service on fresh in-memory storage."""

    def _make(ignore_tag_for_sub_schema: bool = False, id_type: type = str) -> CrudService:
        return CrudService(
            "Contact",
            MemoryStorage(id_type=id_type),
            build_contact_schema(id_type),
            ignore_tag_for_sub_schema=ignore_tag_for_sub_schema,
        )

    return _make


@pytest.fixture
def contact_service(make_contact_service: Callable[..., CrudService]) -> CrudService:
    return make_contact_service()


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def add_extraneous(entity: dict[str, Any]) -> dict[str, Any]:
    """Hook processor that smuggles in a field the schema does not declare."""
    entity["extraneous"] = "remove me"
    return entity


class Recorder:
    """Callable that records every call's positional arguments."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def __call__(self, *args: Any) -> None:
        self.calls.append(args)
