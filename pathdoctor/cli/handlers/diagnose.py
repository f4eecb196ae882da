"""Diagnose command handler for pathdoctor CLI."""

import argparse
import sys

from rich.table import Table

from pathdoctor.branding import (
    SEVERITY_STYLES,
    console,
    displayable,
    px_header,
    px_print,
    safe_markup,
)
from pathdoctor.config import OUTPUT_FORMATS, DoctorConfig
from pathdoctor.engine import DiagnosticsEngine, parse_access
from pathdoctor.exceptions import UsageError
from pathdoctor.models import AccessRequest, DiagnosticReport, TargetHint
from pathdoctor.principal import principal_for_user
from pathdoctor.reporter import render


class DiagnoseHandler:
    """Handler for diagnose command."""

    def __init__(self, verbose: bool = False, config: DoctorConfig | None = None):
        self.verbose = verbose
        self.config = config or DoctorConfig()

    def diagnose(self, args: argparse.Namespace) -> int:
        """Handle diagnose command."""
        hint = TargetHint.AUTO
        if args.as_command:
            hint = TargetHint.COMMAND
        elif args.as_path:
            hint = TargetHint.PATH

        access = parse_access(args.access) if args.access else None

        principal_provider = None
        if args.as_user:
            try:
                principal = principal_for_user(args.as_user)
            except KeyError:
                raise UsageError(f"Unknown user: {args.as_user}") from None
            principal_provider = lambda: principal  # noqa: E731

        engine = DiagnosticsEngine(self.config, principal_provider=principal_provider)
        report = engine.diagnose(AccessRequest(args.target, hint, access))

        fmt = args.format or self.config.default_format
        if fmt == "rich":
            self._display_report(report)
        else:
            sys.stdout.write(displayable(render(report, fmt)))
        return report.exit_status

    def _display_report(self, report: DiagnosticReport) -> None:
        """Show a report on the terminal with Rich tables."""
        px_header(f"pathdoctor: {report.target}")

        overview = Table.grid(padding=(0, 2))
        overview.add_column(style="bold")
        overview.add_column()
        p = report.principal
        overview.add_row("Target", safe_markup(f"{report.target} ({report.hint.value})"))
        if report.resolved_path and report.resolved_path != report.target:
            overview.add_row("Resolved", safe_markup(report.resolved_path))
        overview.add_row(
            "Principal", safe_markup(f"{p.username} (uid {p.uid}) groups: {', '.join(sorted(p.groups))}")
        )
        modules = ", ".join(f"{name}: {status}" for name, status in report.security_modules)
        overview.add_row("Platform", safe_markup(report.platform + (f" [{modules}]" if modules else "")))
        state = report.file_state
        if state is not None and not state.is_missing:
            overview.add_row("Kind", state.kind.value)
            overview.add_row("Owner", safe_markup(f"{state.owner}:{state.group}"))
            overview.add_row("Mode", f"{state.mode_string} ({state.octal})")
        console.print(overview)

        chain = report.link_chain
        if chain is not None and chain.is_link:
            px_header("Link chain")
            for hop in chain.hops:
                marker = "" if hop.exists else " [red](missing)[/red]"
                console.print(f"  {safe_markup(hop.path)} → {safe_markup(hop.target)}{marker}")

        px_header("Findings")
        if not report.findings:
            px_print("No problems found", "success")
        else:
            table = Table(show_header=True, header_style="bold")
            table.add_column("#", style="dim", justify="right")
            table.add_column("Severity")
            table.add_column("Code", style="cyan")
            table.add_column("Message")
            for i, finding in enumerate(report.findings, 1):
                style = SEVERITY_STYLES[finding.severity.value]
                table.add_row(
                    str(i),
                    f"[{style}]{finding.severity.value}[/{style}]",
                    finding.code,
                    safe_markup(finding.message),
                )
            console.print(table)

        if report.suggestions:
            px_header("Suggestions")
            for suggestion in report.suggestions:
                console.print(f"[bold]•[/bold] {safe_markup(suggestion.summary)}")
                for command in suggestion.commands:
                    console.print(f"    [dim]$[/dim] {safe_markup(command)}", highlight=False)

        console.print()
        counts = report.counts()
        summary = f"{counts['error']} error(s), {counts['warning']} warning(s), {counts['info']} info"
        if report.has_errors:
            px_print(f"Access blocked: {summary}", "error")
        else:
            px_print(f"No blocking problems: {summary}", "success")


def add_diagnose_parser(subparsers) -> argparse.ArgumentParser:
    """Add diagnose parser to subparsers."""
    diagnose_parser = subparsers.add_parser(
        "diagnose", help="Explain why a file, directory or command cannot be used"
    )
    diagnose_parser.add_argument("target", help="Path or bare command name")
    hint = diagnose_parser.add_mutually_exclusive_group()
    hint.add_argument(
        "--command", dest="as_command", action="store_true", help="Treat TARGET as a command name"
    )
    hint.add_argument("--path", dest="as_path", action="store_true", help="Treat TARGET as a path")
    diagnose_parser.add_argument(
        "--access", metavar="SPEC", help="Intended access, e.g. 'rx' or 'read,write'"
    )
    diagnose_parser.add_argument(
        "--format", "-f", choices=OUTPUT_FORMATS, help="Output format (default from config)"
    )
    diagnose_parser.add_argument(
        "--as-user", metavar="USER", help="Evaluate access for another account"
    )
    return diagnose_parser
