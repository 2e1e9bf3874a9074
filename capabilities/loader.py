"""Registry loader: discover capability documents under a set of roots.

Loading never writes to disk. Each root is scanned independently, so roots
are gathered concurrently and merged back in the order they were given.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Sequence

import aiofiles.os

from utils import get_logger

from .errors import RegistryEmptyError
from .parser import derive_name, list_document_files, read_text, split_frontmatter
from .types import (
    AGENT_CATEGORIES,
    CapabilityDocument,
    CapabilityKind,
    CapabilityRoot,
    LoadResult,
    ParsedDocument,
    ParseWarning,
)

logger = get_logger(__name__)


def source_roots(source_dir: Path, trust_level: int = 0, label: str = "") -> list[CapabilityRoot]:
    """Build the standard ``agents``/``commands`` roots of a repository checkout."""
    source_dir = Path(source_dir).expanduser().resolve()
    label = label or source_dir.name
    return [
        CapabilityRoot(source_dir / kind.subdir, kind, trust_level, label)
        for kind in (CapabilityKind.AGENT, CapabilityKind.COMMAND)
    ]


def document_id(root: Path, path: Path) -> str:
    return path.relative_to(root).with_suffix("").as_posix()


def parse_document(
    root: CapabilityRoot, root_order: int, path: Path, text: str
) -> ParsedDocument:
    """Turn one file into a document, falling back to the filename on bad front-matter."""
    frontmatter = split_frontmatter(text)
    doc_id = document_id(root.path, path)

    category = None
    if root.kind is CapabilityKind.AGENT:
        category = doc_id.split("/", 1)[0]

    name = str(frontmatter.data.get("name") or "").strip() or derive_name(path)
    description = str(frontmatter.data.get("description") or "").strip()

    document = CapabilityDocument(
        id=doc_id,
        kind=root.kind,
        name=name,
        description=description,
        source_path=path.absolute(),
        category=category,
        content=frontmatter.body,
        trust_level=root.trust_level,
        root_order=root_order,
    )
    if frontmatter.error:
        return ParsedDocument(document, ParseWarning(path, frontmatter.error))
    return ParsedDocument(document)


async def load_root(root: CapabilityRoot, root_order: int) -> LoadResult:
    result = LoadResult()
    if not await aiofiles.os.path.isdir(root.path):
        logger.info(f"Capability root not found, skipping: {root.path}")
        return result

    if root.kind is CapabilityKind.AGENT:
        for category in AGENT_CATEGORIES:
            if not await aiofiles.os.path.isdir(root.path / category):
                logger.info(f"{category} not found in {root.path}, skipping")

    for path in await list_document_files(root.path):
        if root.kind is CapabilityKind.AGENT:
            rel = path.relative_to(root.path)
            if len(rel.parts) < 2 or rel.parts[0] not in AGENT_CATEGORIES:
                result.warnings.append(
                    ParseWarning(path, "agent is outside the known category directories")
                )
                continue

        try:
            text = await read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            result.warnings.append(ParseWarning(path, f"unreadable document: {e}"))
            continue

        parsed = parse_document(root, root_order, path, text)
        if parsed.warning:
            logger.warning(f"{path}: {parsed.warning.reason}")
            result.warnings.append(parsed.warning)
        result.documents.append(parsed.document)

    logger.debug(f"Loaded {len(result.documents)} {root.kind.value} document(s) from {root.path}")
    return result


async def load_registry(roots: Sequence[CapabilityRoot]) -> LoadResult:
    """Scan every root and collect documents plus parse warnings.

    Args:
        roots: Ordered roots; the first one is the primary source.

    Returns:
        LoadResult with documents in root order (files sorted within a root).

    Raises:
        RegistryEmptyError: If the first root is missing or nothing was found.
    """
    if not roots:
        raise RegistryEmptyError("No capability roots configured")

    primary = roots[0]
    if not await aiofiles.os.path.isdir(primary.path):
        raise RegistryEmptyError(f"Source root not found: {primary.path}")

    partials = await asyncio.gather(
        *(load_root(root, order) for order, root in enumerate(roots))
    )

    merged = LoadResult()
    for partial in partials:
        merged.documents.extend(partial.documents)
        merged.warnings.extend(partial.warnings)

    if not merged.documents:
        searched = ", ".join(str(root.path) for root in roots)
        raise RegistryEmptyError(f"No capability documents found in: {searched}")

    return merged
