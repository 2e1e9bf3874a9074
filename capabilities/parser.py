"""Parsing and rendering helpers for capability documents."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles
import aiofiles.os
import yaml

FRONTMATTER_DELIMITER = "---"
ARGUMENTS_PLACEHOLDER = "$ARGUMENTS"

_SEPARATOR_RE = re.compile(r"[\s_]+")
_REPEATED_HYPHEN_RE = re.compile(r"-{2,}")


@dataclass(frozen=True)
class FrontMatter:
    data: dict[str, object] = field(default_factory=dict)
    body: str = ""
    error: str | None = None


def split_frontmatter(text: str) -> FrontMatter:
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return FrontMatter({}, text)

    # Body is sliced from the original text so line endings survive
    offset = len(lines[0])
    body = None
    for line in lines[1:]:
        if line.strip() == FRONTMATTER_DELIMITER:
            body = text[offset + len(line) :]
            break
        offset += len(line)

    if body is None:
        return FrontMatter({}, text, "unterminated front-matter block")

    yaml_text = text[len(lines[0]) : offset]

    try:
        data = yaml.safe_load(yaml_text) or {}
    except yaml.YAMLError as e:
        problem = getattr(e, "problem", None) or "invalid YAML"
        return FrontMatter({}, body, f"front-matter is not valid YAML ({problem})")

    if not isinstance(data, dict):
        return FrontMatter({}, body, "front-matter is not a mapping")

    return FrontMatter(data, body)


def normalize_reference(value: str) -> str:
    """Lowercase and hyphenate a name or reference (``Code_Reviewer`` -> ``code-reviewer``)."""
    value = _SEPARATOR_RE.sub("-", value.strip().lower())
    return _REPEATED_HYPHEN_RE.sub("-", value).strip("-")


def derive_name(path: Path) -> str:
    return normalize_reference(path.stem)


def split_invocation(value: str, prefix: str) -> tuple[str, str]:
    parts = value[len(prefix) :].split(maxsplit=1)
    if not parts:
        return "", ""
    return parts[0], parts[1].strip() if len(parts) > 1 else ""


def render_template(template: str, arguments: str, default_phrase: str) -> tuple[str, str]:
    """Substitute ``$ARGUMENTS`` in a document body.

    Returns:
        Tuple of (rendered arguments, rendered body). An empty argument string
        renders as ``default_phrase`` so the placeholder never leaks through.
    """
    rendered_arguments = arguments if arguments else default_phrase
    if ARGUMENTS_PLACEHOLDER in template:
        return rendered_arguments, template.replace(ARGUMENTS_PLACEHOLDER, rendered_arguments)
    if not arguments:
        return rendered_arguments, template
    suffix = f"\n\nARGUMENTS: {arguments}" if template.strip() else f"ARGUMENTS: {arguments}"
    return rendered_arguments, f"{template.rstrip()}{suffix}"


async def read_text(path: Path) -> str:
    async with aiofiles.open(path, encoding="utf-8") as handle:
        return await handle.read()


def _is_document_file(path: Path, root: Path) -> bool:
    rel = path.relative_to(root)
    if any(part.startswith(".") for part in rel.parts):
        return False
    if path.name.lower() == "readme.md":
        return False
    return path.is_file()


async def list_document_files(root: Path) -> list[Path]:
    if not await aiofiles.os.path.isdir(root):
        return []

    def _collect() -> list[Path]:
        return sorted(p for p in root.rglob("*.md") if _is_document_file(p, root))

    return await asyncio.to_thread(_collect)
