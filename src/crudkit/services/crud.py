"""CrudService — the operation controller.

Every mutation is a short linear pipeline that halts on the first error:

    create / update:
        DEFAULT → STRIP → PROJECT(persist) → HOOKS(*Validate) → VALIDATE
        → HOOKS(create|update) → PERSIST → EVENT → RESPOND

    partial_update:
        IDENTIFY → LOAD → MERGE → STRIP → PROJECT(persist)
        → HOOKS(partialValidate) → VALIDATE → LIMIT TO PATCH KEYS
        → HOOKS(partialUpdate) → PERSIST → EVENT → RESPOND

Validation always runs against the validate scope (``validate`` or
``tag``); the ``persist`` tag only narrows what is written. The event
fires after storage acknowledges the write and before the caller gets
the result.

No locking: two concurrent partial updates of one entity may race.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any

from crudkit.domain.schema import Entity, Schema
from crudkit.errors import ConfigurationError, EntityNotFoundError
from crudkit.events.notifier import Event, EventNotifier
from crudkit.options import FindOptions, OperationOptions
from crudkit.pipeline.hooks import HookChain, HookRegistry, Phase, Processor
from crudkit.pipeline.merge import keys_to_write, merge_for_validation, require_identifier
from crudkit.pipeline.projection import project
from crudkit.pipeline.validation import validate_entity
from crudkit.services.telemetry import trace_span, traced
from crudkit.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

OptionsArg = OperationOptions | Mapping[str, Any] | None


class CrudService:
    """Schema-driven create/read/update/delete service for one entity type.

    Parameters:
        name: Human name of the entity type (e.g. ``"Contact"``).
        storage: Persistence adapter; its ``id_field`` must exist in *schema*.
        schema: Field declarations used to clean, cast and validate.
        slug: URL-friendly name. Defaults to the lower-cased name without spaces.
        plural: Defaults to ``name + "s"``.
        ignore_tag_for_sub_schema: Default for projecting nested schemas in full.

    Raises:
        ConfigurationError: If the schema lacks the storage identifier field.
    """

    def __init__(
        self,
        name: str,
        storage: StorageAdapter,
        schema: Schema,
        *,
        slug: str | None = None,
        plural: str | None = None,
        ignore_tag_for_sub_schema: bool = False,
    ) -> None:
        if storage.id_field not in schema.properties:
            msg = f"schema does not have the required property '{storage.id_field}'"
            raise ConfigurationError(msg)

        self.name = name
        self.slug = slug or name.lower().replace(" ", "")
        self.plural = plural or f"{name}s"
        self.storage = storage
        self.schema = schema
        self.ignore_tag_for_sub_schema = ignore_tag_for_sub_schema
        self.hooks = HookRegistry()
        self.events = EventNotifier()

    def __repr__(self) -> str:
        return f"CrudService({self.name!r}, storage={type(self.storage).__name__})"

    @property
    def id_field(self) -> str:
        return self.storage.id_field

    @property
    def id_type(self) -> type:
        return self.storage.id_type

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def pre(self, phase: Phase | str, processor: Processor) -> int:
        """Append *processor* to the hook chain for *phase*. Returns the chain size."""
        return self.hooks.pre(phase, processor)

    def on(self, event: Event | str, handler: Callable[..., Any]) -> object:
        """Subscribe *handler* to *event*. Returns a handle for ``events.unregister``."""
        return self.events.on(event, handler)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @traced
    async def create(self, entity: Mapping[str, Any], options: OptionsArg = None) -> Entity:
        """Clean, validate and persist a new entity. Returns the stored entity."""
        opts = OperationOptions.coerce(options)
        piped = await self._clean_and_validate(
            self.schema.make_default(entity),
            opts,
            self.hooks.create_validate,
        )

        with trace_span("hooks.create"):
            piped = await self.hooks.create.run(piped)

        # ── PERSIST ──────────────────────────────────────────────
        with trace_span("persist"):
            saved = await self.storage.create(self.schema.strip_unknown_properties(piped))

        # ── EVENT ────────────────────────────────────────────────
        self._emit(Event.CREATE, entity=saved, options=opts)

        # ── RESPOND ──────────────────────────────────────────────
        return self.schema.strip_unknown_properties(saved)

    @traced
    async def update(
        self, entity: Mapping[str, Any], options: OptionsArg = None
    ) -> Entity | None:
        """Replace the persist-scoped fields of an existing entity.

        Returns ``None`` when no entity has the submitted identifier.
        """
        opts = OperationOptions.coerce(options)
        defaulted = self.schema.make_default(entity)
        piped = await self._clean_and_validate(defaulted, opts, self.hooks.update_validate)

        with trace_span("hooks.update"):
            piped = await self.hooks.update.run(piped)

        # ── PERSIST ──────────────────────────────────────────────
        write = self.schema.strip_unknown_properties(piped)
        write.setdefault(self.id_field, self._cast_id(defaulted.get(self.id_field)))
        with trace_span("persist"):
            saved = await self.storage.update(write)

        if saved is None:
            logger.debug("%s update matched nothing: %r", self.name, write[self.id_field])
            return None

        # ── EVENT ────────────────────────────────────────────────
        self._emit(Event.UPDATE, entity=saved, options=opts)

        # ── RESPOND ──────────────────────────────────────────────
        return self.schema.strip_unknown_properties(saved)

    @traced
    async def partial_update(
        self, patch: Mapping[str, Any], options: OptionsArg = None
    ) -> Entity | None:
        """Apply *patch* to the stored entity, writing only the patch's keys.

        The stored entity merged with the patch is what gets validated, so
        required fields already stored never fail spuriously.

        Raises:
            MissingIdentifierError: *patch* has no identifier.
            EntityNotFoundError: Nothing is stored under that identifier.
        """
        opts = OperationOptions.coerce(options)

        # ── IDENTIFY / LOAD ──────────────────────────────────────
        entity_id = require_identifier(patch, self.id_field)
        lookup_id = self._cast_id(entity_id)
        with trace_span("load"):
            original = await self.storage.read(lookup_id)
        if original is None:
            raise EntityNotFoundError(self.id_field, entity_id)

        # ── MERGE / VALIDATE ─────────────────────────────────────
        merged = merge_for_validation(original, patch)
        validated = await self._clean_and_validate(merged, opts, self.hooks.partial_validate)

        # ── LIMIT TO PATCH KEYS ──────────────────────────────────
        write = keys_to_write(patch, validated)
        write.setdefault(self.id_field, lookup_id)

        with trace_span("hooks.partialUpdate"):
            piped = await self.hooks.partial_update.run(write)

        # ── PERSIST ──────────────────────────────────────────────
        with trace_span("persist"):
            saved = await self.storage.update(self.schema.strip_unknown_properties(piped))

        if saved is None:
            logger.debug("%s partial update matched nothing: %r", self.name, lookup_id)
            return None

        # ── EVENT ────────────────────────────────────────────────
        self._emit(Event.PARTIAL_UPDATE, entity=saved, original=original, options=opts)

        # ── RESPOND ──────────────────────────────────────────────
        return self.schema.strip_unknown_properties(saved)

    @traced
    async def delete(self, entity_id: Any, options: OptionsArg = None) -> None:
        """Delete one entity. Deleting an unknown identifier is not an error."""
        opts = OperationOptions.coerce(options)
        with trace_span("hooks.delete"):
            target = await self.hooks.delete.run(self._cast_id(entity_id))
        with trace_span("persist"):
            await self.storage.delete(target)
        self._emit(Event.DELETE, entity_id=target, options=opts)

    @traced
    async def delete_many(self, query: Mapping[str, Any]) -> None:
        """Delete every entity matching *query*."""
        with trace_span("persist"):
            await self.storage.delete_many(query)
        self._emit(Event.DELETE_MANY, query=dict(query))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    async def read(self, entity_id: Any) -> Entity | None:
        """Return the entity stored under *entity_id*, or ``None``."""
        found = await self.storage.read(self._cast_id(entity_id))
        if found is None:
            return None
        return self.schema.strip_unknown_properties(found)

    @traced
    async def find(
        self,
        query: Mapping[str, Any] | None = None,
        options: FindOptions | Mapping[str, Any] | None = None,
    ) -> list[Entity]:
        """Return every matching entity as a materialised list."""
        found = await self.storage.find(query or {}, FindOptions.coerce(options))
        return [self.schema.strip_unknown_properties(entity) for entity in found]

    async def find_all(
        self,
        query: Mapping[str, Any] | None = None,
        options: FindOptions | Mapping[str, Any] | None = None,
    ) -> AsyncIterator[Entity]:
        """Lazily yield matching entities. Single pass; not restartable."""
        async for entity in self.storage.iter_find(query or {}, FindOptions.coerce(options)):
            yield self.schema.strip_unknown_properties(entity)

    @traced
    async def count(self, query: Mapping[str, Any] | None = None) -> int:
        return await self.storage.count(query or {})

    # ------------------------------------------------------------------
    # Pipeline stages (private)
    # ------------------------------------------------------------------

    async def _clean_and_validate(
        self,
        entity: Mapping[str, Any],
        opts: OperationOptions,
        validate_hooks: HookChain,
    ) -> Entity:
        """STRIP → PROJECT(persist) → CAST → HOOKS(validate phase) → VALIDATE."""
        with trace_span("clean"):
            stripped = self.schema.strip_unknown_properties(entity)
            projected = project(
                self.schema,
                stripped,
                opts.effective_persist_tag,
                self._ignore_tag_for_sub_schema(opts),
            )
            clean = self.schema.cast(projected)

        with trace_span(f"hooks.{validate_hooks.phase}"):
            piped = await validate_hooks.run(clean)

        with trace_span("validate"):
            await validate_entity(
                self.schema,
                piped,
                opts.validation_set,
                opts.effective_validate_tag,
            )
        return piped

    def _ignore_tag_for_sub_schema(self, opts: OperationOptions) -> bool:
        if opts.ignore_tag_for_sub_schema is None:
            return self.ignore_tag_for_sub_schema
        return opts.ignore_tag_for_sub_schema

    def _cast_id(self, entity_id: Any) -> Any:
        return self.schema.cast_property(self.schema.properties[self.id_field].type, entity_id)

    def _emit(self, event: Event, **payload: Any) -> None:
        delivered = self.events.emit(event, **payload)
        logger.debug("%s emitted %s to %d subscriber(s)", self.name, event, delivered)
