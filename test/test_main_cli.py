import io

import pytest
from rich.console import Console

import main as agentlink_main
from capabilities import CollisionWarning, FilesystemOperationError, SyncReport
from config import Config


class _DummyConsole:
    def __init__(self):
        self.lines: list[str] = []

    def print(self, *args, **kwargs):  # noqa: ARG002
        self.lines.append(" ".join(str(a) for a in args))


@pytest.fixture
def calls(monkeypatch):
    recorded = {"error": [], "info": [], "success": [], "warning": [], "markdown": []}

    monkeypatch.setattr(agentlink_main, "ensure_config", lambda: None)
    monkeypatch.setattr(agentlink_main, "ensure_runtime_dirs", lambda create_logs=False: None)
    monkeypatch.setattr(agentlink_main, "setup_logger", lambda command="agentlink": None)
    monkeypatch.setattr(agentlink_main, "get_log_file_path", lambda: None)

    monkeypatch.setattr(
        agentlink_main.terminal_ui,
        "print_error",
        lambda msg, title="Error": recorded["error"].append((title, msg)),
    )
    for name in ("info", "success", "warning", "markdown"):
        monkeypatch.setattr(
            agentlink_main.terminal_ui,
            f"print_{name}",
            lambda msg, _key=name: recorded[_key].append(msg),
        )
    monkeypatch.setattr(agentlink_main.terminal_ui, "console", _DummyConsole())
    return recorded


def test_link_and_unlink(calls, source_repo, destination):
    exit_code = agentlink_main.main(["link", "-s", str(source_repo), "-d", str(destination)])

    assert exit_code == agentlink_main.EXIT_OK
    assert calls["success"] == ["All capabilities linked."]
    assert (destination / "commands" / "test.md").is_symlink()

    exit_code = agentlink_main.main(["unlink", "-d", str(destination)])

    assert exit_code == agentlink_main.EXIT_OK
    assert calls["success"][-1] == "Removed 2 link(s)."
    assert list(destination.iterdir()) == []


def test_link_reports_collisions(calls, source_repo, destination):
    user_file = destination / "commands" / "test.md"
    user_file.parent.mkdir(parents=True)
    user_file.write_text("mine", encoding="utf-8")

    exit_code = agentlink_main.main(["link", "-s", str(source_repo), "-d", str(destination)])

    assert exit_code == agentlink_main.EXIT_FAILURE
    assert any("collision" in msg for msg in calls["warning"])
    assert user_file.read_text(encoding="utf-8") == "mine"


def test_link_copy_mode(calls, source_repo, destination):
    exit_code = agentlink_main.main(
        ["link", "-s", str(source_repo), "-d", str(destination), "--mode", "copy"]
    )

    assert exit_code == agentlink_main.EXIT_OK
    assert not (destination / "commands" / "test.md").is_symlink()


def test_link_with_overlay(calls, source_repo, destination, tmp_path):
    overlay = tmp_path / "overlay"
    command = overlay / "commands" / "test.md"
    command.parent.mkdir(parents=True)
    command.write_text("Overlay tests for $ARGUMENTS", encoding="utf-8")

    exit_code = agentlink_main.main(
        ["link", "-s", str(source_repo), "--overlay", str(overlay), "-d", str(destination)]
    )

    assert exit_code == agentlink_main.EXIT_OK
    assert (destination / "commands" / "test.md").resolve() == command.resolve()


def test_missing_source_is_a_usage_error(calls, tmp_path, destination):
    exit_code = agentlink_main.main(
        ["link", "-s", str(tmp_path / "nowhere"), "-d", str(destination)]
    )

    assert exit_code == agentlink_main.EXIT_USAGE
    assert calls["error"][0][0] == "RegistryEmptyError"
    assert list(destination.iterdir()) == []


def test_invoke_prints_rendered_document(calls, source_repo, capsys):
    exit_code = agentlink_main.main(["invoke", "-s", str(source_repo), "/test", "the", "parser"])

    assert exit_code == agentlink_main.EXIT_OK
    assert capsys.readouterr().out.strip() == "Run tests for: the parser"


def test_invoke_unknown_reference(calls, source_repo, capsys):
    exit_code = agentlink_main.main(["invoke", "-s", str(source_repo), "@agent-nonexistent"])

    assert exit_code == agentlink_main.EXIT_USAGE
    assert calls["error"][0][0] == "UnknownReferenceError"
    assert capsys.readouterr().out == ""


def test_list_renders_catalog(calls, source_repo):
    exit_code = agentlink_main.main(["list", "-s", str(source_repo)])

    assert exit_code == agentlink_main.EXIT_OK
    (section,) = calls["markdown"]
    assert "#### core (1 agents)" in section
    assert "### Commands (1)" in section


def test_invalid_link_mode_config(calls, monkeypatch, destination):
    monkeypatch.setattr(Config, "LINK_MODE", "hardlink")

    exit_code = agentlink_main.main(["unlink", "-d", str(destination)])

    assert exit_code == agentlink_main.EXIT_USAGE
    assert calls["error"][0][0] == "Configuration Error"


def test_link_and_unlink_one_kind(calls, source_repo, destination):
    exit_code = agentlink_main.main(
        ["link", "-s", str(source_repo), "-d", str(destination), "--kind", "agent"]
    )

    assert exit_code == agentlink_main.EXIT_OK
    assert (destination / "agents" / "core" / "code-reviewer.md").is_symlink()
    assert not (destination / "commands").exists()

    agentlink_main.main(["link", "-s", str(source_repo), "-d", str(destination)])
    exit_code = agentlink_main.main(["unlink", "-d", str(destination), "--kind", "agent"])

    assert exit_code == agentlink_main.EXIT_OK
    assert calls["success"][-1] == "Removed 1 link(s)."
    assert not (destination / "agents").exists()
    assert (destination / "commands" / "test.md").is_symlink()


def test_invoke_reports_bracketed_reference(monkeypatch, source_repo):
    output = io.StringIO()
    monkeypatch.setattr(agentlink_main, "ensure_config", lambda: None)
    monkeypatch.setattr(agentlink_main, "ensure_runtime_dirs", lambda create_logs=False: None)
    monkeypatch.setattr(agentlink_main, "get_log_file_path", lambda: None)
    monkeypatch.setattr(
        agentlink_main.terminal_ui, "console", Console(file=output, width=200, color_system=None)
    )

    exit_code = agentlink_main.main(["invoke", "-s", str(source_repo), "[/x]"])

    assert exit_code == agentlink_main.EXIT_USAGE
    rendered = output.getvalue()
    assert "UnknownReferenceError" in rendered
    assert "[/x]" in rendered


def test_reports_render_paths_with_brackets(monkeypatch, tmp_path):
    output = io.StringIO()
    monkeypatch.setattr(
        agentlink_main.terminal_ui, "console", Console(file=output, width=300, color_system=None)
    )
    target = tmp_path / "[/dest]" / "commands" / "test.md"
    report = SyncReport(tmp_path)
    report.bucket("commands").skipped = 1
    report.collisions.append(CollisionWarning(target, "not created by this linker"))
    report.errors.append(FilesystemOperationError(target, "link", "[bold]denied"))

    agentlink_main.terminal_ui.print_sync_report(report)
    agentlink_main.terminal_ui.print_config({"Destination": tmp_path / "[/dest]"})

    rendered = output.getvalue()
    assert "[/dest]" in rendered
    assert "[bold]denied" in rendered
