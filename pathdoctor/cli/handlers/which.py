"""Which command handler for pathdoctor CLI."""

import argparse
import os

from pathdoctor import pathmodel
from pathdoctor.branding import px_print
from pathdoctor.config import DoctorConfig
from pathdoctor.filesystem import HostFilesystem


class WhichHandler:
    """Handler for which command: resolution only, no permission checks."""

    def __init__(self, verbose: bool = False, config: DoctorConfig | None = None, filesystem=None):
        self.verbose = verbose
        self.config = config or DoctorConfig()
        self.filesystem = filesystem or HostFilesystem()

    def which(self, args: argparse.Namespace) -> int:
        """Handle which command."""
        raw = args.path_string if args.path_string is not None else os.environ.get("PATH", "")
        search_path = pathmodel.parse(raw, self.config.path_separator, self.filesystem)

        if args.all:
            matches = pathmodel.find_all(search_path, args.name, self.filesystem)
        else:
            first = pathmodel.resolve(search_path, args.name, self.filesystem)
            matches = [first] if first is not None else []

        if not matches:
            px_print(f"{args.name} not found in {len(search_path)} PATH entries", "error")
            return 1

        for match in matches:
            if self.verbose:
                print(f"{match.path}\t(entry {match.index}: {match.entry.directory})")
            else:
                print(match.path)
        return 0


def add_which_parser(subparsers) -> argparse.ArgumentParser:
    """Add which parser to subparsers."""
    which_parser = subparsers.add_parser("which", help="Locate a command on PATH")
    which_parser.add_argument("name", help="Command name")
    which_parser.add_argument("--all", "-a", action="store_true", help="Show every match in order")
    which_parser.add_argument(
        "--path-string", metavar="S", help="Search S instead of the PATH environment variable"
    )
    return which_parser
