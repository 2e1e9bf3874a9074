"""Tests for the registry loader."""

import logging

import pytest

from capabilities import (
    CapabilityKind,
    CapabilityRoot,
    RegistryEmptyError,
    load_registry,
    source_roots,
)
from capabilities.loader import parse_document

from doc_helpers import snapshot, write_document


@pytest.mark.asyncio
async def test_load_registry_indexes_agents_and_commands(source_repo) -> None:
    result = await load_registry(source_roots(source_repo))

    assert result.warnings == []
    by_id = {(doc.kind, doc.id): doc for doc in result.documents}
    agent = by_id[(CapabilityKind.AGENT, "core/code-reviewer")]
    assert agent.name == "code-reviewer"
    assert agent.description == "Reviews code for correctness and style."
    assert agent.category == "core"
    assert agent.source_path.resolve() == (source_repo / "agents/core/code-reviewer.md").resolve()
    assert agent.content.strip() == "Review the changes carefully."

    command = by_id[(CapabilityKind.COMMAND, "test")]
    assert command.name == "test"
    assert command.category is None
    assert "$ARGUMENTS" in command.content


@pytest.mark.asyncio
async def test_nested_agent_id_keeps_relative_path(tmp_path) -> None:
    repo = tmp_path / "repo"
    write_document(repo, "agents/specialized/dotnet/webapi.md", name="dotnet-webapi-expert")

    result = await load_registry(source_roots(repo))

    (document,) = result.documents
    assert document.id == "specialized/dotnet/webapi"
    assert document.category == "specialized"
    assert document.group == "agents/specialized"


@pytest.mark.asyncio
async def test_name_derived_from_filename_without_frontmatter(tmp_path) -> None:
    repo = tmp_path / "repo"
    write_document(repo, "agents/universal/API_Architect.md", body="No metadata here.")

    result = await load_registry(source_roots(repo))

    (document,) = result.documents
    assert document.name == "api-architect"
    assert document.description == ""
    assert result.warnings == []


@pytest.mark.asyncio
async def test_malformed_frontmatter_is_indexed_with_warning(tmp_path) -> None:
    repo = tmp_path / "repo"
    path = repo / "agents" / "core" / "broken_agent.md"
    path.parent.mkdir(parents=True)
    path.write_text("---\nname: never-closed\ndescription: oops\n\nBody", encoding="utf-8")

    result = await load_registry(source_roots(repo))

    (document,) = result.documents
    assert document.name == "broken-agent"
    assert document.description == ""
    (warning,) = result.warnings
    assert warning.path.resolve() == path.resolve()
    assert "unterminated" in warning.reason


def test_parse_document_returns_tagged_result(tmp_path) -> None:
    root = CapabilityRoot(tmp_path / "commands", CapabilityKind.COMMAND)
    ok = parse_document(root, 0, root.path / "deploy.md", "---\nname: deploy\n---\nShip it")
    assert ok.ok
    assert ok.document.name == "deploy"

    warned = parse_document(root, 0, root.path / "deploy.md", "---\nname: deploy\nShip it")
    assert not warned.ok
    assert warned.document.name == "deploy"
    assert warned.warning is not None


@pytest.mark.asyncio
async def test_missing_first_root_raises(tmp_path) -> None:
    with pytest.raises(RegistryEmptyError):
        await load_registry(source_roots(tmp_path / "does-not-exist"))


@pytest.mark.asyncio
async def test_missing_secondary_root_contributes_nothing(source_repo, tmp_path) -> None:
    roots = source_roots(source_repo) + source_roots(tmp_path / "missing-overlay", trust_level=10)

    result = await load_registry(roots)

    assert len(result.documents) == 2


@pytest.mark.asyncio
async def test_existing_but_empty_roots_raise(tmp_path) -> None:
    repo = tmp_path / "repo"
    (repo / "agents" / "core").mkdir(parents=True)
    (repo / "commands").mkdir()

    with pytest.raises(RegistryEmptyError):
        await load_registry(source_roots(repo))


@pytest.mark.asyncio
async def test_no_roots_raises() -> None:
    with pytest.raises(RegistryEmptyError):
        await load_registry([])


@pytest.mark.asyncio
async def test_agent_outside_categories_is_skipped_with_warning(source_repo) -> None:
    stray = write_document(source_repo, "agents/experimental/idea.md", name="idea")
    loose = write_document(source_repo, "agents/loose.md", name="loose")

    result = await load_registry(source_roots(source_repo))

    assert {doc.name for doc in result.documents} == {"code-reviewer", "test"}
    assert {w.path.resolve() for w in result.warnings} == {stray.resolve(), loose.resolve()}


@pytest.mark.asyncio
async def test_readme_and_hidden_files_are_ignored(source_repo) -> None:
    write_document(source_repo, "agents/README.md", body="# Agents")
    write_document(source_repo, "agents/core/README.md", body="# Core agents")
    write_document(source_repo, "commands/.drafts/wip.md", name="wip")

    result = await load_registry(source_roots(source_repo))

    assert sorted(doc.id for doc in result.documents) == ["core/code-reviewer", "test"]
    assert result.warnings == []


@pytest.mark.asyncio
async def test_roots_keep_order_and_trust(source_repo, tmp_path) -> None:
    overlay = tmp_path / "overlay"
    write_document(overlay, "commands/deploy.md", body="Deploy $ARGUMENTS")

    result = await load_registry(source_roots(source_repo) + source_roots(overlay, trust_level=5))

    deploy = next(doc for doc in result.documents if doc.id == "deploy")
    assert deploy.trust_level == 5
    assert deploy.root_order == 3
    reviewer = next(doc for doc in result.documents if doc.id == "core/code-reviewer")
    assert reviewer.root_order == 0


@pytest.mark.asyncio
async def test_loading_never_writes(source_repo) -> None:
    before = snapshot(source_repo.parent)

    await load_registry(source_roots(source_repo))

    assert snapshot(source_repo.parent) == before


@pytest.mark.asyncio
async def test_missing_category_directories_are_logged(source_repo, caplog) -> None:
    caplog.set_level(logging.INFO, logger="capabilities.loader")

    await load_registry(source_roots(source_repo))

    assert "universal not found in" in caplog.text
    assert "core not found in" not in caplog.text


def test_library_logs_are_silent_without_setup() -> None:
    handlers = logging.getLogger("capabilities").handlers
    assert any(isinstance(handler, logging.NullHandler) for handler in handlers)
