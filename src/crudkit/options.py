"""Per-call operation options.

Options are frozen after construction. Anything the caller passes that
crudkit does not recognise is kept in ``model_extra`` and travels with
the options object to event subscribers.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class OperationOptions(BaseModel):
    """Tag scoping and validation context for one mutation.

    Attributes:
        tag: Restricts both the persist-set and the validate-set.
        persist_tag: Overrides ``tag`` for the persist-set only.
        validate_tag: Overrides ``tag`` for the validate-set only.
        validation_set: Forwarded to schema validation as contextual state.
        ignore_tag_for_sub_schema: Project nested schemas in full. ``None``
            inherits the service default.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    tag: str | None = None
    persist_tag: str | None = Field(default=None, alias="persist")
    validate_tag: str | None = Field(default=None, alias="validate")
    validation_set: str = Field(default="all", alias="set")
    ignore_tag_for_sub_schema: bool | None = Field(default=None, alias="ignoreTagForSubSchema")

    @property
    def effective_persist_tag(self) -> str | None:
        return self.persist_tag or self.tag

    @property
    def effective_validate_tag(self) -> str | None:
        return self.validate_tag or self.tag

    @classmethod
    def coerce(cls, options: OperationOptions | Mapping[str, Any] | None) -> OperationOptions:
        """Normalise caller input into an options object."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(dict(options))


class FindOptions(BaseModel):
    """Paging and ordering for ``find`` queries."""

    model_config = ConfigDict(frozen=True)

    sort: dict[str, Literal[1, -1]] = Field(default_factory=dict)
    limit: int | None = Field(default=None, ge=0)
    skip: int = Field(default=0, ge=0)

    @classmethod
    def coerce(cls, options: FindOptions | Mapping[str, Any] | None) -> FindOptions:
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(dict(options))
