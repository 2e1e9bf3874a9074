"""Capability registry, linker and invocation router for agentlink."""

import logging

from .errors import (
    AmbiguousReferenceError,
    CapabilityError,
    FilesystemOperationError,
    RegistryEmptyError,
    UnknownReferenceError,
)
from .linker import DEFAULT_LINEAGE, Linker
from .loader import load_registry, source_roots
from .manifest import MANIFEST_NAME, LinkManifest
from .render import render_capabilities_section
from .resolver import CapabilityRegistry, resolve_conflicts
from .router import resolve_reference, resolve_user_input, route
from .types import (
    AGENT_CATEGORIES,
    CapabilityDocument,
    CapabilityKind,
    CapabilityRoot,
    CollisionWarning,
    InvocationRequest,
    InvocationResult,
    LinkEntry,
    LinkMode,
    LinkType,
    LoadResult,
    OverrideDecision,
    ParsedDocument,
    ParseWarning,
    SyncReport,
    UnlinkReport,
)

# Library records are dropped unless utils.logger.setup_logger() adds a handler
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AGENT_CATEGORIES",
    "AmbiguousReferenceError",
    "CapabilityDocument",
    "CapabilityError",
    "CapabilityKind",
    "CapabilityRegistry",
    "CapabilityRoot",
    "CollisionWarning",
    "DEFAULT_LINEAGE",
    "FilesystemOperationError",
    "InvocationRequest",
    "InvocationResult",
    "LinkEntry",
    "LinkManifest",
    "LinkMode",
    "LinkType",
    "Linker",
    "LoadResult",
    "MANIFEST_NAME",
    "OverrideDecision",
    "ParsedDocument",
    "ParseWarning",
    "RegistryEmptyError",
    "SyncReport",
    "UnknownReferenceError",
    "UnlinkReport",
    "load_registry",
    "render_capabilities_section",
    "resolve_conflicts",
    "resolve_reference",
    "resolve_user_input",
    "route",
    "source_roots",
]
