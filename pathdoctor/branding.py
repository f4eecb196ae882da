"""
Console output helpers for pathdoctor.

All user-facing terminal output goes through the shared Rich console so the
CLI can be silenced or captured in one place.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

VERSION = "0.3.0"

console = Console()

_STATUS_STYLES = {
    "success": ("green", "✓"),
    "error": ("red", "✗"),
    "warning": ("yellow", "!"),
    "info": ("cyan", "•"),
}

SEVERITY_STYLES = {
    "error": "bold red",
    "warning": "yellow",
    "info": "cyan",
}


def displayable(text: str) -> str:
    """Turn undecodable filename bytes (surrogateescape) into \\xNN escapes."""
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


def safe_markup(text: str) -> str:
    """Displayable text with Rich markup characters escaped."""
    return escape(displayable(text))


def px_print(message: str, status: str = "info") -> None:
    """Print a one-line status message with a coloured marker."""
    style, marker = _STATUS_STYLES.get(status, ("white", "•"))
    console.print(f"[{style}]{marker}[/{style}] {safe_markup(message)}", highlight=False)


def px_header(title: str) -> None:
    """Print a section header."""
    console.print()
    console.print(f"[bold cyan]━━ {safe_markup(title)}[/bold cyan]")


def show_banner() -> None:
    console.print(
        Panel(
            f"[bold]pathdoctor[/bold] {VERSION}\n"
            "[dim]Why can't I run, read or reach this?[/dim]",
            border_style="blue",
            expand=False,
        )
    )
