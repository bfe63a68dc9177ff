"""Hook Chain — ordered pre-processors per lifecycle phase.

Each phase owns one :class:`HookChain`. Processors run strictly in
registration order; processor *i+1* receives the payload returned by
processor *i*. The first processor to raise stops the chain and the
failure surfaces as :class:`~crudkit.errors.HookError` carrying the
payload the failing processor received.

An empty chain is the identity transform. The engine never retries.
Registries are append-only; registering while operations are in flight
is not supported.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any

from crudkit.errors import HookError

logger = logging.getLogger(__name__)

Processor = Callable[[Any], Any | Awaitable[Any]]


class Phase(StrEnum):
    """The seven pipeline insertion points."""

    CREATE_VALIDATE = "createValidate"
    CREATE = "create"
    UPDATE_VALIDATE = "updateValidate"
    UPDATE = "update"
    PARTIAL_VALIDATE = "partialValidate"
    PARTIAL_UPDATE = "partialUpdate"
    DELETE = "delete"


class HookChain:
    """Serial, short-circuiting chain of processors for one phase.

    A processor takes the payload and returns the next payload (sync or
    async). Returning ``None`` keeps the payload it was given, so
    processors that only mutate in place need no ``return``.
    """

    def __init__(self, phase: Phase) -> None:
        self.phase = phase
        self._processors: list[Processor] = []

    def __len__(self) -> int:
        return len(self._processors)

    def append(self, processor: Processor) -> int:
        """Add *processor* to the end of the chain. Returns the new chain size."""
        if not callable(processor):
            msg = f"{self.phase} processor must be callable, got {type(processor).__name__}"
            raise TypeError(msg)
        self._processors.append(processor)
        return len(self._processors)

    async def run(self, payload: Any) -> Any:
        """Thread *payload* through every processor and return the result."""
        current = payload
        for index, processor in enumerate(self._processors):
            try:
                result = processor(current)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:
                logger.debug("%s processor %d failed: %s", self.phase, index, exc)
                raise HookError(str(self.phase), current, str(exc) or type(exc).__name__) from exc
            if result is not None:
                current = result
        return current


def _chain(phase: Phase) -> Any:
    return field(default_factory=lambda: HookChain(phase))


@dataclass
class HookRegistry:
    """One typed hook chain per phase, created empty with the service."""

    create_validate: HookChain = _chain(Phase.CREATE_VALIDATE)
    create: HookChain = _chain(Phase.CREATE)
    update_validate: HookChain = _chain(Phase.UPDATE_VALIDATE)
    update: HookChain = _chain(Phase.UPDATE)
    partial_validate: HookChain = _chain(Phase.PARTIAL_VALIDATE)
    partial_update: HookChain = _chain(Phase.PARTIAL_UPDATE)
    delete: HookChain = _chain(Phase.DELETE)

    def chain(self, phase: Phase | str) -> HookChain:
        """Look up the chain for *phase* (enum member or its string value).

        Raises:
            ValueError: If *phase* does not name a known phase.
        """
        resolved = Phase(phase)
        for f in fields(self):
            hook_chain: HookChain = getattr(self, f.name)
            if hook_chain.phase is resolved:
                return hook_chain
        raise ValueError(f"No hook chain for phase {phase!r}")  # pragma: no cover

    def pre(self, phase: Phase | str, processor: Processor) -> int:
        """Append *processor* to the chain for *phase*. Returns the chain size."""
        return self.chain(phase).append(processor)
