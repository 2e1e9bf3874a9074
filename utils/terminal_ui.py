"""Terminal UI utilities using Rich library for beautiful output.

This module provides a unified interface for terminal output, integrating
with the theme system for consistent styling.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import Config
from utils.theme import Theme, set_theme

if TYPE_CHECKING:
    from capabilities.types import OverrideDecision, ParseWarning, SyncReport, UnlinkReport

# Initialize theme from config
set_theme(Config.UI_THEME)

# Global console instance with theme support
console = Console(theme=Theme.get_rich_theme())


def _get_colors():
    """Get current theme colors."""
    return Theme.get_colors()


def print_header(title: str, subtitle: Optional[str] = None) -> None:
    """Print a formatted header panel.

    Args:
        title: Main title text
        subtitle: Optional subtitle text
    """
    colors = _get_colors()
    content = f"[bold {colors.primary}]{escape(title)}[/bold {colors.primary}]"
    if subtitle:
        content += f"\n[{colors.text_secondary}]{escape(subtitle)}[/{colors.text_secondary}]"

    console.print(Panel(content, border_style=colors.primary, box=box.DOUBLE, padding=(1, 2)))


def print_config(config: Dict[str, Any]) -> None:
    """Print configuration in a formatted table.

    Args:
        config: Dictionary of configuration key-value pairs
    """
    colors = _get_colors()
    table = Table(show_header=False, box=box.SIMPLE, border_style=colors.text_muted, padding=(0, 2))
    table.add_column("Key", style=f"{colors.primary} bold")
    table.add_column("Value", style=colors.success)

    for key, value in config.items():
        table.add_row(escape(key), escape(str(value)))

    console.print(table)


def print_error(message: str, title: str = "Error") -> None:
    """Print an error message.

    Args:
        message: Error message
        title: Error title (default: "Error")
    """
    colors = _get_colors()
    console.print(
        Panel(
            f"[{colors.error}]{escape(message)}[/{colors.error}]",
            title=f"[bold {colors.error}]{escape(title)}[/bold {colors.error}]",
            border_style=colors.error,
            box=box.ROUNDED,
        )
    )


def print_warning(message: str) -> None:
    """Print a warning message.

    Args:
        message: Warning message
    """
    colors = _get_colors()
    console.print(f"[{colors.warning}]{escape(message)}[/{colors.warning}]")


def print_success(message: str) -> None:
    """Print a success message.

    Args:
        message: Success message
    """
    colors = _get_colors()
    console.print(f"[{colors.success}]✓ {escape(message)}[/{colors.success}]")


def print_info(message: str) -> None:
    """Print an info message.

    Args:
        message: Info message
    """
    colors = _get_colors()
    console.print(f"[{colors.primary}]ℹ {escape(message)}[/{colors.primary}]")


def print_log_location(log_file: str) -> None:
    """Print log file location.

    Args:
        log_file: Path to log file
    """
    colors = _get_colors()
    console.print()
    console.print(f"[{colors.text_muted}]Detailed logs: {escape(log_file)}[/{colors.text_muted}]")


def print_markdown(markdown_text: str) -> None:
    """Print formatted markdown.

    Args:
        markdown_text: Markdown text to render
    """
    md = Markdown(markdown_text)
    console.print(md)


def print_parse_warnings(warnings: Sequence["ParseWarning"]) -> None:
    for warning in warnings:
        print_warning(f"⚠ {warning.path}: {warning.reason}")


def print_overrides(overrides: Sequence["OverrideDecision"]) -> None:
    colors = _get_colors()
    for decision in overrides:
        style = decision.kind.value  # "agent" or "command" theme style
        shadowed = ", ".join(str(p) for p in decision.shadowed_source_paths)
        console.print(
            f"[{style}]↷ {decision.kind.value} {escape(decision.id)}[/{style}] "
            f"[{colors.text_secondary}]{escape(str(decision.winning_source_path))} shadows {escape(shadowed)}"
            f"[/{colors.text_secondary}]"
        )


def print_sync_report(report: "SyncReport") -> None:
    """Print per-group link counts followed by collisions and errors.

    Args:
        report: Report returned by Linker.sync
    """
    colors = _get_colors()
    table = Table(
        show_header=True,
        header_style=f"bold {colors.primary}",
        box=box.ROUNDED,
        border_style=colors.text_muted,
        padding=(0, 1),
    )
    table.add_column("Group", style=colors.primary)
    for column in ("Created", "Replaced", "Unchanged", "Skipped", "Pruned", "Failed"):
        table.add_column(column, justify="right")

    for group in sorted(report.counts):
        counts = report.counts[group]
        table.add_row(
            escape(group),
            str(counts.created),
            str(counts.replaced),
            str(counts.unchanged),
            str(counts.skipped),
            str(counts.pruned),
            str(counts.failed),
        )
    console.print(table)

    for collision in report.collisions:
        print_warning(f"⊘ Skipped {collision.target_path} ({collision.reason})")
    for error in report.errors:
        console.print(f"[{colors.error}]✗ {escape(str(error))}[/{colors.error}]")


def print_unlink_report(report: "UnlinkReport") -> None:
    """Print removed link counts followed by skipped entries and errors.

    Args:
        report: Report returned by Linker.unlink
    """
    colors = _get_colors()
    for group in sorted(report.removed):
        console.print(
            f"[{colors.success}]✓[/{colors.success}] Removed {report.removed[group]} link(s) from {escape(group)}"
        )
    for path in report.removed_directories:
        console.print(f"[{colors.text_secondary}]  removed empty directory {escape(str(path))}[/{colors.text_secondary}]")
    for skipped in report.skipped:
        print_warning(f"⊘ Left {skipped.target_path} ({skipped.reason})")
    for error in report.errors:
        console.print(f"[{colors.error}]✗ {escape(str(error))}[/{colors.error}]")
