"""Main entry point for agentlink."""

import argparse
import asyncio
import importlib.metadata
import os
from pathlib import Path
from typing import List, Optional

from capabilities import (
    CapabilityError,
    CapabilityKind,
    CapabilityRegistry,
    CapabilityRoot,
    Linker,
    LinkMode,
    OverrideDecision,
    load_registry,
    render_capabilities_section,
    resolve_conflicts,
    resolve_reference,
    source_roots,
)
from config import Config, ensure_config
from utils import get_log_file_path, setup_logger, terminal_ui
from utils.runtime import ensure_runtime_dirs, get_config_file

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_roots(source: Optional[str], overlays: List[str]) -> List[CapabilityRoot]:
    """Build ordered capability roots: the source checkout first, overlays after.

    Args:
        source: Source repository directory (defaults to Config.SOURCE_DIR, then cwd)
        overlays: Directories whose documents override the source

    Returns:
        Ordered list of roots for load_registry
    """
    source_dir = Path(source or Config.SOURCE_DIR or os.getcwd())
    roots = source_roots(source_dir, Config.SOURCE_TRUST_LEVEL)
    for overlay in overlays:
        roots.extend(source_roots(Path(overlay), Config.OVERLAY_TRUST_LEVEL))
    return roots


async def load_resolved(args) -> tuple[CapabilityRegistry, List[OverrideDecision]]:
    overlays = args.overlay if args.overlay is not None else Config.OVERLAY_DIRS
    result = await load_registry(build_roots(args.source, overlays))
    terminal_ui.print_parse_warnings(result.warnings)
    return resolve_conflicts(result.documents)


def _kind(args) -> Optional[CapabilityKind]:
    return CapabilityKind(args.kind) if args.kind else None


def _destination(args) -> Path:
    return Path(args.dest or Config.DESTINATION_DIR).expanduser()


async def run_link(args) -> int:
    registry, overrides = await load_resolved(args)
    kind = _kind(args)
    linker = Linker(_destination(args), lineage=args.lineage, mode=LinkMode(args.mode))

    terminal_ui.print_header(
        "agentlink: link", f"{len(registry.documents(kind))} capabilities"
    )
    terminal_ui.print_config(
        {
            "Destination": linker.destination_root,
            "Lineage": linker.lineage,
            "Mode": linker.mode.value,
            "Kind": kind.value if kind else "all",
            "Config": get_config_file(),
        }
    )
    terminal_ui.print_overrides(overrides)

    report = await linker.sync(registry, kind=kind)
    terminal_ui.print_sync_report(report)

    if not report.ok:
        terminal_ui.print_warning(
            f"Finished with {len(report.collisions)} collision(s) and {len(report.errors)} error(s)."
        )
        return EXIT_FAILURE

    terminal_ui.print_success("All capabilities linked.")
    terminal_ui.print_info("Agents: use @agent-name ... | Commands: /command-name [arguments]")
    terminal_ui.print_info("To unlink, run: agentlink unlink")
    return EXIT_OK


async def run_unlink(args) -> int:
    linker = Linker(_destination(args), lineage=args.lineage)
    terminal_ui.print_header("agentlink: unlink", str(linker.destination_root))

    report = await linker.unlink(kind=_kind(args))
    terminal_ui.print_unlink_report(report)

    if not report.ok:
        terminal_ui.print_error(
            "\n".join(str(error) for error in report.errors), title="Unlink Errors"
        )
        return EXIT_FAILURE

    if report.total_removed == 0:
        terminal_ui.print_warning(f"No links recorded for lineage '{linker.lineage}'.")
    else:
        terminal_ui.print_success(f"Removed {report.total_removed} link(s).")
    terminal_ui.print_info("To re-link, run: agentlink link")
    return EXIT_OK


async def run_list(args) -> int:
    registry, overrides = await load_resolved(args)
    kind = _kind(args)
    section = render_capabilities_section(registry, kind=kind, overrides=overrides)
    if section is None:
        terminal_ui.print_warning("No capabilities found.")
        return EXIT_OK
    terminal_ui.print_markdown(section)
    return EXIT_OK


async def run_invoke(args) -> int:
    registry, _ = await load_resolved(args)
    result = resolve_reference(args.token, " ".join(args.arguments), registry)
    # Raw output for the calling runtime, no Rich formatting
    print(result.rendered)
    return EXIT_OK


def _add_source_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        "-s",
        type=str,
        help="Repository checkout containing agents/ and commands/ (default: current directory)",
    )
    parser.add_argument(
        "--overlay",
        action="append",
        help="Extra root whose documents override the source (repeatable)",
    )


def _add_kind_option(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument("--kind", choices=[kind.value for kind in CapabilityKind], help=help_text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Link agent and command documents into an assistant profile directory"
    )

    try:
        version = importlib.metadata.version("agentlink")
    except importlib.metadata.PackageNotFoundError:
        version = "dev"
    parser.add_argument("--version", "-V", action="version", version=f"agentlink {version}")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging to ~/.agentlink/logs/",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    link = subparsers.add_parser("link", help="Sync capability documents into the destination")
    _add_source_options(link)
    link.add_argument("--dest", "-d", type=str, help="Destination root (default: ~/.claude)")
    link.add_argument(
        "--mode",
        choices=[mode.value for mode in LinkMode],
        default=Config.LINK_MODE,
        help="symlink, copy, or auto (symlink with copy fallback)",
    )
    link.add_argument("--lineage", default=Config.LINEAGE, help="Manifest lineage name")
    _add_kind_option(link, "Only link documents of this kind")
    link.set_defaults(handler=run_link)

    unlink = subparsers.add_parser("unlink", help="Remove links created by a previous link")
    unlink.add_argument("--dest", "-d", type=str, help="Destination root (default: ~/.claude)")
    unlink.add_argument("--lineage", default=Config.LINEAGE, help="Manifest lineage name")
    _add_kind_option(unlink, "Only remove links of this kind")
    unlink.set_defaults(handler=run_unlink)

    listing = subparsers.add_parser("list", help="Show the resolved capability catalog")
    _add_source_options(listing)
    _add_kind_option(listing, "Only list documents of this kind")
    listing.set_defaults(handler=run_list)

    invoke = subparsers.add_parser("invoke", help="Resolve @agent-name or /command-name")
    _add_source_options(invoke)
    invoke.add_argument("token", help="Reference token, e.g. @agent-code-reviewer or /test")
    invoke.add_argument("arguments", nargs="*", help="Argument text for $ARGUMENTS")
    invoke.set_defaults(handler=run_invoke)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    ensure_config()
    # Initialize runtime directories (create logs dir only in verbose mode)
    ensure_runtime_dirs(create_logs=args.verbose)

    # Initialize logging only in verbose mode
    if args.verbose:
        setup_logger(args.command)

    try:
        Config.validate()
    except ValueError as e:
        terminal_ui.print_error(str(e), title="Configuration Error")
        return EXIT_USAGE

    try:
        exit_code = asyncio.run(args.handler(args))
    except CapabilityError as e:
        terminal_ui.print_error(str(e), title=type(e).__name__)
        exit_code = EXIT_USAGE

    log_file = get_log_file_path()
    if log_file:
        terminal_ui.print_log_location(log_file)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
