"""Render the resolved catalog as markdown."""

from __future__ import annotations

from typing import Sequence

from .resolver import CapabilityRegistry
from .types import CapabilityDocument, CapabilityKind, OverrideDecision

USAGE_HINTS = """\
- Agents: mention `@agent-<name>` in a prompt, e.g. `use @agent-code-reviewer on src/`.
- Commands: type `/<name> [arguments]`, e.g. `/test the parser module`.
- References are case-insensitive and may be shortened to any unambiguous prefix."""


def _document_line(document: CapabilityDocument) -> str:
    path_str = str(document.source_path).replace("\\", "/")
    description = f": {document.description}" if document.description else ""
    return f"- {document.name}{description} (id: {document.id}, file: {path_str})"


def render_capabilities_section(
    registry: CapabilityRegistry,
    kind: CapabilityKind | None = None,
    overrides: Sequence[OverrideDecision] = (),
) -> str | None:
    """Render available agents and commands as a markdown section.

    Args:
        registry: Resolved registry.
        kind: Restrict the listing to one kind.
        overrides: Override decisions to list after the catalog.

    Returns:
        Formatted markdown section, or None if there is nothing to list.
    """
    if not registry.documents(kind):
        return None

    lines: list[str] = ["## Capabilities"]

    if kind in (None, CapabilityKind.AGENT):
        lines.append("### Agents")
        for category, documents in registry.agents_by_category().items():
            if not documents:
                continue
            lines.append(f"#### {category} ({len(documents)} agents)")
            lines.extend(_document_line(doc) for doc in documents)

    if kind in (None, CapabilityKind.COMMAND):
        commands = registry.documents(CapabilityKind.COMMAND)
        if commands:
            lines.append(f"### Commands ({len(commands)})")
            lines.extend(_document_line(doc) for doc in commands)

    if overrides:
        lines.append("### Overrides")
        for decision in overrides:
            shadowed = ", ".join(str(p) for p in decision.shadowed_source_paths)
            lines.append(
                f"- {decision.kind.value} {decision.id}: {decision.winning_source_path} "
                f"(shadows {shadowed})"
            )

    lines.append("### Usage")
    lines.append(USAGE_HINTS)
    return "\n".join(lines)
