"""PATH audit command handler for pathdoctor CLI.

Lists the search path entries in order and reports hygiene problems:
empty segments, relative entries, duplicates, missing or non-directory
entries and directories other users can write to.
"""

import argparse
import json
import os

from rich.table import Table

from pathdoctor import pathmodel
from pathdoctor.branding import SEVERITY_STYLES, console, px_header, px_print, safe_markup
from pathdoctor.config import DoctorConfig
from pathdoctor.filesystem import HostFilesystem
from pathdoctor.models import Severity
from pathdoctor.principal import capture_principal
from pathdoctor.remediation import RemediationPlanner
from pathdoctor.reporter import finding_to_dict, suggestion_to_dict


class PathHandler:
    """Handler for path command."""

    def __init__(self, verbose: bool = False, config: DoctorConfig | None = None, filesystem=None):
        self.verbose = verbose
        self.config = config or DoctorConfig()
        self.filesystem = filesystem or HostFilesystem()

    def path(self, args: argparse.Namespace) -> int:
        """Handle path command."""
        raw = args.path_string if args.path_string is not None else os.environ.get("PATH", "")
        search_path = pathmodel.parse(raw, self.config.path_separator, self.filesystem)

        if args.clean:
            print(pathmodel.clean(search_path).render())
            return 0

        principal = capture_principal()
        findings = pathmodel.audit(search_path, principal, self.filesystem)
        suggestions = RemediationPlanner(principal, search_path).plan(findings)

        if args.json:
            payload = {
                "entries": [
                    {
                        "index": i,
                        "value": entry.raw_value,
                        "exists": entry.exists,
                        "is_directory": entry.is_directory,
                    }
                    for i, entry in enumerate(search_path.entries)
                ],
                "findings": [finding_to_dict(f) for f in findings],
                "suggestions": [suggestion_to_dict(s) for s in suggestions],
            }
            print(json.dumps(payload, indent=2, sort_keys=True))
        else:
            self._display(search_path, findings, suggestions)

        problems = [f for f in findings if f.severity is not Severity.INFO]
        return 1 if problems else 0

    def _display(self, search_path, findings, suggestions) -> None:
        px_header(f"PATH ({len(search_path)} entries)")
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Entry")
        table.add_column("Status")
        for i, entry in enumerate(search_path.entries):
            if entry.is_empty:
                status = "[yellow]empty (current directory)[/yellow]"
            elif not entry.exists:
                status = "[red]missing[/red]"
            elif not entry.is_directory:
                status = "[red]not a directory[/red]"
            else:
                status = "[green]ok[/green]"
            table.add_row(str(i), safe_markup(entry.raw_value or "''"), status)
        console.print(table)

        if not findings:
            px_print("PATH looks clean", "success")
            return

        px_header("Findings")
        for finding in findings:
            style = SEVERITY_STYLES[finding.severity.value]
            console.print(
                f"[{style}]{finding.severity.value:>7}[/{style}] {finding.code}: "
                f"{safe_markup(finding.message)}"
            )

        if suggestions:
            px_header("Suggestions")
            seen = set()
            for suggestion in suggestions:
                key = (suggestion.summary, suggestion.commands)
                if key in seen:
                    continue
                seen.add(key)
                console.print(f"[bold]•[/bold] {safe_markup(suggestion.summary)}")
                for command in suggestion.commands:
                    console.print(f"    [dim]$[/dim] {safe_markup(command)}", highlight=False)


def add_path_parser(subparsers) -> argparse.ArgumentParser:
    """Add path parser to subparsers."""
    path_parser = subparsers.add_parser("path", help="Audit the PATH search path")
    path_parser.add_argument(
        "--path-string", metavar="S", help="Audit S instead of the PATH environment variable"
    )
    path_parser.add_argument(
        "--clean", action="store_true", help="Print PATH without duplicates and empty segments"
    )
    path_parser.add_argument("--json", action="store_true", help="Output as JSON")
    return path_parser
