"""pathdoctor CLI - Main package.

This module provides the DoctorCLI facade. Uses handler pattern for modular
command handling.
"""

import argparse

from pathdoctor.branding import VERSION, px_print
from pathdoctor.cli.handlers import (
    DiagnoseHandler,
    LinkHandler,
    PathHandler,
    WhichHandler,
)
from pathdoctor.config import DoctorConfig


class DoctorCLI:
    """Facade class for pathdoctor CLI - delegates to modular handlers."""

    def __init__(self, verbose: bool = False, config: DoctorConfig | None = None):
        self.verbose = verbose
        self.config = config or DoctorConfig()
        self._diagnose_handler = DiagnoseHandler(verbose=verbose, config=self.config)
        self._path_handler = PathHandler(verbose=verbose, config=self.config)
        self._which_handler = WhichHandler(verbose=verbose, config=self.config)
        self._link_handler = LinkHandler(verbose=verbose, config=self.config)

    # Delegate methods to handlers

    def diagnose(self, args: argparse.Namespace) -> int:
        """Handle diagnose command."""
        return self._diagnose_handler.diagnose(args)

    def path(self, args: argparse.Namespace) -> int:
        """Handle path command."""
        return self._path_handler.path(args)

    def which(self, args: argparse.Namespace) -> int:
        """Handle which command."""
        return self._which_handler.which(args)

    def link(self, args: argparse.Namespace) -> int:
        """Handle link command."""
        return self._link_handler.link(args)

    def create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser with all subcommands."""
        from pathdoctor.cli.handlers import (
            add_diagnose_parser,
            add_link_parser,
            add_path_parser,
            add_which_parser,
        )

        parser = argparse.ArgumentParser(
            prog="pathdoctor",
            description="Explain why a file, directory or command cannot be accessed or run",
        )
        parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
        parser.add_argument("--config", metavar="FILE", help="YAML configuration file")
        parser.add_argument("--version", "-V", action="version", version=f"pathdoctor {VERSION}")

        subparsers = parser.add_subparsers(dest="command")

        add_diagnose_parser(subparsers)
        add_path_parser(subparsers)
        add_which_parser(subparsers)
        add_link_parser(subparsers)

        return parser

    def dispatch(self, args: argparse.Namespace) -> int:
        """Dispatch command to appropriate handler.

        Returns exit code (0 for success, 1 for failure).
        """
        command = getattr(args, "command", None)

        command_handlers = {
            "diagnose": self.diagnose,
            "path": self.path,
            "which": self.which,
            "link": self.link,
        }

        if command in command_handlers:
            return command_handlers[command](args)

        px_print(f"Unknown command '{command}'", "error")
        return 2


# Re-export main from cli_main for convenience
from pathdoctor.cli_main import main as main  # noqa: E402

__all__ = ["DoctorCLI", "main"]
