"""Sidecar manifest recording which destination entries the linker owns.

The manifest lives at ``<destination>/.agentlink-manifest.yaml`` and groups
records by lineage name, so several sources can link into one destination
without claiming each other's files. A path counts as ours only when it is
listed here and still matches the record on disk.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles
import aiofiles.os
import yaml

from utils import get_logger

from .types import LinkEntry, LinkType

logger = get_logger(__name__)

MANIFEST_NAME = ".agentlink-manifest.yaml"
MANIFEST_VERSION = 1


@dataclass
class ManifestRecord:
    """One linked entry, keyed in the manifest by its destination-relative path."""

    document: str
    group: str
    source: str
    link_type: LinkType
    digest: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "document": self.document,
            "group": self.group,
            "source": self.source,
            "link_type": self.link_type.value,
        }
        if self.digest:
            data["digest"] = self.digest
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ManifestRecord"]:
        if not isinstance(data, dict):
            return None
        try:
            return cls(
                document=str(data["document"]),
                group=str(data.get("group", "")),
                source=str(data["source"]),
                link_type=LinkType(data["link_type"]),
                digest=data.get("digest"),
            )
        except (KeyError, ValueError):
            return None

    @classmethod
    def from_entry(cls, entry: LinkEntry) -> "ManifestRecord":
        return cls(
            document=entry.source_document_id,
            group=entry.group,
            source=str(entry.source_path),
            link_type=entry.link_type,
            digest=entry.digest,
        )


@dataclass
class LineageRecord:
    entries: Dict[str, ManifestRecord] = field(default_factory=dict)
    directories: set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not self.entries and not self.directories


class LinkManifest:
    """Manifest of linker-owned entries in one destination root."""

    def __init__(
        self, destination_root: Path, lineages: Optional[Dict[str, LineageRecord]] = None
    ) -> None:
        self.destination_root = Path(destination_root)
        self.lineages: Dict[str, LineageRecord] = lineages or {}

    @property
    def path(self) -> Path:
        return self.destination_root / MANIFEST_NAME

    def lineage(self, name: str) -> LineageRecord:
        return self.lineages.setdefault(name, LineageRecord())

    def drop(self, name: str) -> None:
        self.lineages.pop(name, None)

    @classmethod
    async def load(cls, destination_root: Path) -> "LinkManifest":
        manifest = cls(destination_root)
        if not await aiofiles.os.path.isfile(manifest.path):
            return manifest

        try:
            async with aiofiles.open(manifest.path, encoding="utf-8") as f:
                data = yaml.safe_load(await f.read()) or {}
        except (OSError, yaml.YAMLError) as e:
            # An unreadable manifest proves ownership of nothing
            logger.warning(f"Ignoring unreadable manifest {manifest.path}: {e}")
            return manifest

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed manifest {manifest.path}")
            return manifest

        for name, raw in (data.get("lineages") or {}).items():
            if not isinstance(raw, dict):
                continue
            lineage = LineageRecord()
            for rel, record_data in (raw.get("entries") or {}).items():
                record = ManifestRecord.from_dict(record_data)
                if record is None:
                    logger.warning(f"Skipping malformed manifest record: {rel}")
                    continue
                lineage.entries[str(rel)] = record
            lineage.directories = {str(d) for d in raw.get("directories") or []}
            manifest.lineages[str(name)] = lineage
        return manifest

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": MANIFEST_VERSION,
            "lineages": {
                name: {
                    "directories": sorted(lineage.directories),
                    "entries": {
                        rel: lineage.entries[rel].to_dict() for rel in sorted(lineage.entries)
                    },
                }
                for name, lineage in sorted(self.lineages.items())
                if not lineage.is_empty()
            },
        }

    async def save(self) -> None:
        """Write the manifest atomically, or delete it when nothing is recorded."""
        data = self.to_dict()
        if not data["lineages"]:
            if await asyncio.to_thread(os.path.lexists, self.path):
                await aiofiles.os.remove(self.path)
            return

        await aiofiles.os.makedirs(self.destination_root, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        content = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(content)
        await asyncio.to_thread(os.replace, tmp_path, self.path)
