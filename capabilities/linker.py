"""Linker: project a resolved registry into a destination tree and back.

Every destination entry the linker creates is recorded in the manifest of
its lineage. Anything else found at a target path is user content and is
never modified. Failures are collected per entry; a batch always runs to the
end and returns an itemized report.
"""

from __future__ import annotations

from pathlib import Path

import aiofiles.os

from utils import get_logger

from .errors import FilesystemOperationError
from .installer import (
    copy_file,
    create_symlink,
    file_digest,
    is_symlink,
    path_exists,
    read_link,
    remove_dir_if_empty,
    remove_entry,
)
from .manifest import LineageRecord, LinkManifest, ManifestRecord
from .resolver import CapabilityRegistry
from .types import (
    CapabilityDocument,
    CapabilityKind,
    CollisionWarning,
    LinkEntry,
    LinkMode,
    LinkType,
    SyncCounts,
    SyncReport,
    UnlinkReport,
)

logger = get_logger(__name__)

DEFAULT_LINEAGE = "agentlink"


def _describe(error: OSError) -> str:
    return error.strerror or str(error)


def _in_kind(rel: str, kind: CapabilityKind | None) -> bool:
    """Whether a destination-relative path or group belongs to ``kind``."""
    if kind is None:
        return True
    return rel == kind.subdir or rel.startswith(f"{kind.subdir}/")


class Linker:
    """Sync and unlink capability documents for one destination root and lineage."""

    def __init__(
        self,
        destination_root: Path,
        lineage: str = DEFAULT_LINEAGE,
        mode: LinkMode = LinkMode.SYMLINK,
    ) -> None:
        self.destination_root = Path(destination_root).expanduser().absolute()
        self.lineage = lineage
        self.mode = mode

    def target_for(self, document: CapabilityDocument) -> Path:
        return (
            self.destination_root
            / document.kind.subdir
            / f"{document.id}{document.source_path.suffix}"
        )

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.destination_root).as_posix()

    async def _is_owned(self, target: Path, record: ManifestRecord) -> bool:
        """Whether ``target`` is still exactly what this lineage put there."""
        if record.link_type is LinkType.SYMLINK:
            return await is_symlink(target) and await read_link(target) == record.source
        if await is_symlink(target) or not await aiofiles.os.path.isfile(target):
            return False
        return await file_digest(target) == record.digest

    async def _is_current(self, record: ManifestRecord, document: CapabilityDocument) -> bool:
        if record.source != str(document.source_path):
            return False
        if record.link_type is LinkType.SYMLINK:
            return self.mode is not LinkMode.COPY
        if self.mode is LinkMode.SYMLINK:
            return False
        return await file_digest(document.source_path) == record.digest

    async def _ensure_parent(self, directory: Path, lineage: LineageRecord) -> None:
        missing: list[Path] = []
        current = directory
        while current != self.destination_root and not await path_exists(current):
            missing.append(current)
            current = current.parent
        for path in reversed(missing):
            await aiofiles.os.makedirs(path, exist_ok=True)
            lineage.directories.add(self._relative(path))

    async def _materialize(
        self, document: CapabilityDocument, target: Path, lineage: LineageRecord
    ) -> LinkEntry:
        await self._ensure_parent(target.parent, lineage)

        link_type = LinkType.SYMLINK
        digest = None
        if self.mode is LinkMode.COPY:
            link_type = LinkType.COPY
            digest = await copy_file(document.source_path, target)
        elif self.mode is LinkMode.SYMLINK:
            await create_symlink(document.source_path, target)
        else:
            try:
                await create_symlink(document.source_path, target)
            except (OSError, NotImplementedError) as e:
                logger.info(f"Symlink refused for {target} ({e}), copying instead")
                link_type = LinkType.COPY
                digest = await copy_file(document.source_path, target)

        return LinkEntry(
            target_path=target,
            source_document_id=document.id,
            link_type=link_type,
            source_path=document.source_path,
            group=document.group,
            digest=digest,
        )

    async def _sync_one(
        self,
        document: CapabilityDocument,
        target: Path,
        lineage: LineageRecord,
        report: SyncReport,
        counts: SyncCounts,
    ) -> None:
        rel = self._relative(target)
        record = lineage.entries.get(rel)

        if not await path_exists(target):
            entry = await self._materialize(document, target, lineage)
            lineage.entries[rel] = ManifestRecord.from_entry(entry)
            report.entries.append(entry)
            counts.created += 1
            return

        if record is None or not await self._is_owned(target, record):
            reason = "not created by this linker"
            if record is not None:
                reason = "modified since it was linked"
                del lineage.entries[rel]
            logger.warning(f"Skipping {target}: {reason}")
            report.collisions.append(CollisionWarning(target, reason))
            counts.skipped += 1
            return

        if await self._is_current(record, document):
            report.entries.append(
                LinkEntry(
                    target_path=target,
                    source_document_id=document.id,
                    link_type=record.link_type,
                    source_path=document.source_path,
                    group=document.group,
                    digest=record.digest,
                )
            )
            counts.unchanged += 1
            return

        await remove_entry(target)
        del lineage.entries[rel]
        entry = await self._materialize(document, target, lineage)
        lineage.entries[rel] = ManifestRecord.from_entry(entry)
        report.entries.append(entry)
        counts.replaced += 1

    async def _prune(
        self,
        lineage: LineageRecord,
        desired: set[str],
        report: SyncReport,
        kind: CapabilityKind | None,
    ) -> None:
        """Remove links of this lineage whose document is gone from the registry."""
        stale = [rel for rel in set(lineage.entries) - desired if _in_kind(rel, kind)]
        for rel in sorted(stale):
            record = lineage.entries[rel]
            target = self.destination_root / rel
            counts = report.bucket(record.group)
            try:
                if await path_exists(target) and await self._is_owned(target, record):
                    await remove_entry(target)
                    counts.pruned += 1
                    logger.info(f"Pruned stale link {target}")
                del lineage.entries[rel]
            except OSError as e:
                report.errors.append(FilesystemOperationError(target, "prune", _describe(e)))
                counts.failed += 1

    async def sync(
        self, registry: CapabilityRegistry, kind: CapabilityKind | None = None
    ) -> SyncReport:
        """Link registry documents into the destination root.

        Args:
            registry: Resolved registry.
            kind: Only link (and prune) documents of this kind.

        Returns:
            SyncReport with per-group counts, collisions and per-entry errors.
        """
        report = SyncReport(self.destination_root)
        try:
            await aiofiles.os.makedirs(self.destination_root, exist_ok=True)
            manifest = await LinkManifest.load(self.destination_root)
        except OSError as e:
            report.errors.append(
                FilesystemOperationError(self.destination_root, "prepare", _describe(e))
            )
            return report

        lineage = manifest.lineage(self.lineage)
        desired: set[str] = set()

        for document in registry.documents(kind):
            target = self.target_for(document)
            desired.add(self._relative(target))
            counts = report.bucket(document.group)
            try:
                await self._sync_one(document, target, lineage, report, counts)
            except OSError as e:
                logger.error(f"Failed to link {target}: {e}")
                report.errors.append(FilesystemOperationError(target, "link", _describe(e)))
                counts.failed += 1

        await self._prune(lineage, desired, report, kind)

        try:
            await manifest.save()
        except OSError as e:
            report.errors.append(FilesystemOperationError(manifest.path, "save manifest", _describe(e)))

        logger.info(
            f"Sync to {self.destination_root}: created={report.created} "
            f"replaced={report.replaced} unchanged={report.unchanged} skipped={report.skipped}"
        )
        return report

    async def _remove_directories(
        self, lineage: LineageRecord, report: UnlinkReport, kind: CapabilityKind | None
    ) -> None:
        directories = sorted(lineage.directories, key=lambda d: (d.count("/"), d), reverse=True)
        for rel in directories:
            if not _in_kind(rel, kind):
                continue
            if any(entry.startswith(f"{rel}/") for entry in lineage.entries):
                # Still holds entries of this lineage (other kind or failed removal)
                continue
            path = self.destination_root / rel
            try:
                if await remove_dir_if_empty(path):
                    report.removed_directories.append(path)
            except OSError as e:
                report.errors.append(FilesystemOperationError(path, "rmdir", _describe(e)))
                continue
            lineage.directories.discard(rel)

    async def unlink(self, kind: CapabilityKind | None = None) -> UnlinkReport:
        """Remove every entry this lineage still owns in the destination root.

        Args:
            kind: Only remove entries of this kind; the rest stay recorded.
        """
        report = UnlinkReport(self.destination_root)
        manifest = await LinkManifest.load(self.destination_root)
        lineage = manifest.lineages.get(self.lineage)
        if lineage is None:
            logger.info(f"Nothing linked by '{self.lineage}' in {self.destination_root}")
            return report

        for rel in sorted(r for r in lineage.entries if _in_kind(r, kind)):
            record = lineage.entries[rel]
            target = self.destination_root / rel
            try:
                if not await path_exists(target):
                    del lineage.entries[rel]
                    continue
                if not await self._is_owned(target, record):
                    logger.warning(f"Leaving {target}: modified since it was linked")
                    report.skipped.append(CollisionWarning(target, "modified since it was linked"))
                    del lineage.entries[rel]
                    continue
                await remove_entry(target)
                del lineage.entries[rel]
                report.removed[record.group] = report.removed.get(record.group, 0) + 1
            except OSError as e:
                logger.error(f"Failed to unlink {target}: {e}")
                report.errors.append(FilesystemOperationError(target, "unlink", _describe(e)))

        await self._remove_directories(lineage, report, kind)

        if lineage.is_empty():
            manifest.drop(self.lineage)
        try:
            await manifest.save()
        except OSError as e:
            report.errors.append(FilesystemOperationError(manifest.path, "save manifest", _describe(e)))
        return report
