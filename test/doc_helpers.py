"""Helpers for building document trees in tests."""

import os
import textwrap
from pathlib import Path
from typing import Optional


def write_document(
    root: Path,
    rel: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    body: str = "Follow the instructions.",
) -> Path:
    """Write a markdown document, with front-matter when name/description are given."""
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    header = ""
    if name is not None or description is not None:
        lines = ["---"]
        if name is not None:
            lines.append(f"name: {name}")
        if description is not None:
            lines.append(f"description: {description}")
        lines.append("---")
        header = "\n".join(lines) + "\n\n"
    path.write_text(header + textwrap.dedent(body).strip() + "\n", encoding="utf-8")
    return path


def snapshot(root: Path) -> dict:
    """Files and symlinks under ``root`` (directories are ignored)."""
    result = {}
    if not root.exists():
        return result
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        if path.is_symlink():
            result[rel] = ("link", os.readlink(path))
        elif path.is_file():
            result[rel] = ("file", path.read_bytes())
    return result
