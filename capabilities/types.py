"""Data models for the capability registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .errors import FilesystemOperationError

AGENT_CATEGORIES = ("core", "orchestrators", "specialized", "universal")


class CapabilityKind(Enum):
    """Kind of capability document."""

    AGENT = "agent"
    COMMAND = "command"

    @property
    def subdir(self) -> str:
        """Directory name used for this kind in source and destination trees."""
        return "agents" if self is CapabilityKind.AGENT else "commands"


class LinkType(Enum):
    SYMLINK = "symlink"
    COPY = "copy"


class LinkMode(Enum):
    """How the linker materializes documents.

    AUTO prefers symlinks and falls back to a copy for each entry the
    platform refuses to symlink (e.g. Windows without developer mode).
    """

    SYMLINK = "symlink"
    COPY = "copy"
    AUTO = "auto"


@dataclass(frozen=True)
class CapabilityRoot:
    path: Path
    kind: CapabilityKind
    trust_level: int = 0
    label: str = ""


@dataclass(frozen=True)
class CapabilityDocument:
    id: str
    kind: CapabilityKind
    name: str
    description: str
    source_path: Path
    category: str | None
    content: str
    trust_level: int = 0
    root_order: int = 0

    @property
    def group(self) -> str:
        """Report bucket for this document (``agents/core``, ``commands``)."""
        if self.category:
            return f"{self.kind.subdir}/{self.category}"
        return self.kind.subdir


@dataclass(frozen=True)
class ParseWarning:
    path: Path
    reason: str


@dataclass(frozen=True)
class ParsedDocument:
    """Result of parsing one file.

    The document is always present; ``warning`` is set when the file was
    indexed from fallbacks because its front-matter could not be used.
    """

    document: CapabilityDocument
    warning: ParseWarning | None = None

    @property
    def ok(self) -> bool:
        return self.warning is None


@dataclass
class LoadResult:
    documents: list[CapabilityDocument] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)


@dataclass(frozen=True)
class OverrideDecision:
    kind: CapabilityKind
    id: str
    winning_source_path: Path
    shadowed_source_paths: tuple[Path, ...]


@dataclass(frozen=True)
class LinkEntry:
    target_path: Path
    source_document_id: str
    link_type: LinkType
    source_path: Path
    group: str
    digest: str | None = None


@dataclass(frozen=True)
class CollisionWarning:
    target_path: Path
    reason: str


@dataclass
class SyncCounts:
    created: int = 0
    replaced: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    pruned: int = 0


@dataclass
class SyncReport:
    destination_root: Path
    counts: dict[str, SyncCounts] = field(default_factory=dict)
    entries: list[LinkEntry] = field(default_factory=list)
    collisions: list[CollisionWarning] = field(default_factory=list)
    errors: list[FilesystemOperationError] = field(default_factory=list)

    def bucket(self, group: str) -> SyncCounts:
        return self.counts.setdefault(group, SyncCounts())

    @property
    def created(self) -> int:
        return sum(c.created for c in self.counts.values())

    @property
    def replaced(self) -> int:
        return sum(c.replaced for c in self.counts.values())

    @property
    def unchanged(self) -> int:
        return sum(c.unchanged for c in self.counts.values())

    @property
    def skipped(self) -> int:
        return sum(c.skipped for c in self.counts.values())

    @property
    def pruned(self) -> int:
        return sum(c.pruned for c in self.counts.values())

    @property
    def ok(self) -> bool:
        return not self.collisions and not self.errors


@dataclass
class UnlinkReport:
    destination_root: Path
    removed: dict[str, int] = field(default_factory=dict)
    skipped: list[CollisionWarning] = field(default_factory=list)
    errors: list[FilesystemOperationError] = field(default_factory=list)
    removed_directories: list[Path] = field(default_factory=list)

    @property
    def total_removed(self) -> int:
        return sum(self.removed.values())

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class InvocationRequest:
    reference_token: str
    argument_text: str = ""


@dataclass(frozen=True)
class InvocationResult:
    document: CapabilityDocument
    rendered_arguments: str
    rendered: str
