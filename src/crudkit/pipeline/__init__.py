"""Operation pipeline core — projection, hook chains, validation gate, merge.

Pipeline modules depend on the domain layer and ``crudkit.errors`` only.
They must never import from services, storage, events, or config.
"""

from crudkit.pipeline.hooks import HookChain, HookRegistry, Phase, Processor
from crudkit.pipeline.merge import keys_to_write, merge_for_validation, require_identifier
from crudkit.pipeline.projection import project
from crudkit.pipeline.validation import validate_entity

__all__ = [
    "HookChain",
    "HookRegistry",
    "Phase",
    "Processor",
    "keys_to_write",
    "merge_for_validation",
    "project",
    "require_identifier",
    "validate_entity",
]
