"""Tests for the link manifest."""

from pathlib import Path

import pytest
import yaml

from capabilities import MANIFEST_NAME, LinkEntry, LinkManifest, LinkType
from capabilities.manifest import LineageRecord, ManifestRecord


def make_record(**overrides) -> ManifestRecord:
    data = {
        "document": "core/code-reviewer",
        "group": "agents/core",
        "source": "/repo/agents/core/code-reviewer.md",
        "link_type": LinkType.SYMLINK,
    }
    data.update(overrides)
    return ManifestRecord(**data)


@pytest.mark.asyncio
async def test_missing_manifest_loads_empty(tmp_path: Path) -> None:
    manifest = await LinkManifest.load(tmp_path)
    assert manifest.lineages == {}
    assert manifest.path == tmp_path / MANIFEST_NAME


@pytest.mark.asyncio
async def test_save_and_load(tmp_path: Path) -> None:
    manifest = LinkManifest(tmp_path)
    lineage = manifest.lineage("agentlink")
    lineage.entries["agents/core/code-reviewer.md"] = make_record()
    lineage.entries["commands/test.md"] = make_record(
        document="test",
        group="commands",
        source="/repo/commands/test.md",
        link_type=LinkType.COPY,
        digest="abc123",
    )
    lineage.directories.update({"agents", "agents/core", "commands"})

    await manifest.save()
    loaded = await LinkManifest.load(tmp_path)

    restored = loaded.lineages["agentlink"]
    assert restored.entries == lineage.entries
    assert restored.directories == {"agents", "agents/core", "commands"}
    assert not (tmp_path / (MANIFEST_NAME + ".tmp")).exists()

    raw = yaml.safe_load((tmp_path / MANIFEST_NAME).read_text(encoding="utf-8"))
    assert raw["version"] == 1
    assert "digest" not in raw["lineages"]["agentlink"]["entries"]["agents/core/code-reviewer.md"]


@pytest.mark.asyncio
async def test_save_without_lineages_removes_file(tmp_path: Path) -> None:
    manifest = LinkManifest(tmp_path)
    manifest.lineage("agentlink").entries["commands/test.md"] = make_record()
    await manifest.save()
    assert manifest.path.exists()

    manifest.drop("agentlink")
    await manifest.save()

    assert not manifest.path.exists()


@pytest.mark.asyncio
async def test_empty_lineages_are_not_written(tmp_path: Path) -> None:
    manifest = LinkManifest(tmp_path)
    manifest.lineage("unused")
    manifest.lineage("agentlink").entries["commands/test.md"] = make_record()

    await manifest.save()
    loaded = await LinkManifest.load(tmp_path)

    assert set(loaded.lineages) == {"agentlink"}


@pytest.mark.asyncio
async def test_corrupt_manifest_is_treated_as_empty(tmp_path: Path) -> None:
    (tmp_path / MANIFEST_NAME).write_text("lineages: [unclosed\n", encoding="utf-8")

    manifest = await LinkManifest.load(tmp_path)

    assert manifest.lineages == {}


@pytest.mark.asyncio
async def test_malformed_records_are_dropped(tmp_path: Path) -> None:
    data = {
        "version": 1,
        "lineages": {
            "agentlink": {
                "directories": ["commands"],
                "entries": {
                    "commands/good.md": make_record(document="good").to_dict(),
                    "commands/no-source.md": {"document": "x", "link_type": "symlink"},
                    "commands/bad-type.md": {"document": "y", "source": "/y", "link_type": "hardlink"},
                },
            },
            "garbage": "not a mapping",
        },
    }
    (tmp_path / MANIFEST_NAME).write_text(yaml.safe_dump(data), encoding="utf-8")

    manifest = await LinkManifest.load(tmp_path)

    assert set(manifest.lineages) == {"agentlink"}
    assert list(manifest.lineages["agentlink"].entries) == ["commands/good.md"]


def test_record_from_entry() -> None:
    entry = LinkEntry(
        target_path=Path("/dest/commands/test.md"),
        source_document_id="test",
        link_type=LinkType.COPY,
        source_path=Path("/repo/commands/test.md"),
        group="commands",
        digest="feed",
    )

    record = ManifestRecord.from_entry(entry)

    assert record.document == "test"
    assert record.source == str(Path("/repo/commands/test.md"))
    assert record.link_type is LinkType.COPY
    assert record.digest == "feed"


def test_lineage_emptiness() -> None:
    assert LineageRecord().is_empty()
    assert not LineageRecord(directories={"agents"}).is_empty()
