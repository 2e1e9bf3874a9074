"""Shared fixtures for capability tests."""

from pathlib import Path

import pytest
from doc_helpers import write_document

from capabilities import load_registry, resolve_conflicts, source_roots


@pytest.fixture
def source_repo(tmp_path) -> Path:
    """A source checkout with one core agent and one command."""
    repo = tmp_path / "source"
    write_document(
        repo,
        "agents/core/code-reviewer.md",
        name="code-reviewer",
        description="Reviews code for correctness and style.",
        body="Review the changes carefully.",
    )
    write_document(
        repo,
        "commands/test.md",
        description="Run the test suite.",
        body="Run tests for: $ARGUMENTS",
    )
    return repo


@pytest.fixture
def destination(tmp_path) -> Path:
    dest = tmp_path / "dest"
    dest.mkdir()
    return dest


@pytest.fixture
def load_resolved():
    """Load and resolve one or more source checkouts, earliest first."""

    async def _load(*source_dirs: Path):
        roots = []
        for source_dir in source_dirs:
            roots.extend(source_roots(source_dir))
        result = await load_registry(roots)
        registry, _ = resolve_conflicts(result.documents)
        return registry

    return _load
