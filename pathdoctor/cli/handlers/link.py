"""Link command handler for pathdoctor CLI."""

import argparse


from pathdoctor.branding import console, px_header, px_print, safe_markup
from pathdoctor.config import DoctorConfig
from pathdoctor.filesystem import HostFilesystem
from pathdoctor.links import LinkResolver
from pathdoctor.models import LinkStatus


class LinkHandler:
    """Handler for link command."""

    def __init__(self, verbose: bool = False, config: DoctorConfig | None = None, filesystem=None):
        self.verbose = verbose
        self.config = config or DoctorConfig()
        self.filesystem = filesystem or HostFilesystem()

    def link(self, args: argparse.Namespace) -> int:
        """Handle link command."""
        depth = args.max_depth or self.config.max_link_depth
        resolver = LinkResolver(self.filesystem, depth)
        chain = resolver.resolve(args.path)

        if not chain.is_link:
            if not self.filesystem.exists(args.path):
                px_print(f"{args.path} does not exist", "error")
                return 1
            px_print(f"{args.path} is not a symbolic link", "info")
        else:
            px_header(f"Link chain ({len(chain.hops)} hops)")
            for hop in chain.hops:
                marker = "" if hop.exists else " [red](missing)[/red]"
                console.print(f"  {safe_markup(hop.path)} → {safe_markup(hop.target)}{marker}")

            if chain.status is LinkStatus.CYCLE:
                px_print(f"Chain loops or exceeds {depth} hops", "error")
            elif chain.status is LinkStatus.BROKEN:
                px_print(f"Broken: {chain.final_path} does not exist", "error")
            else:
                kind = chain.status.value.replace("resolved_", "")
                px_print(f"Resolves to {chain.final_path} ({kind})", "success")

        if resolver.distinguish_hard_link(args.path):
            px_print(f"{args.path} has other hard links", "info")

        return 0 if chain.is_healthy else 1


def add_link_parser(subparsers) -> argparse.ArgumentParser:
    """Add link parser to subparsers."""
    link_parser = subparsers.add_parser("link", help="Show a symlink chain hop by hop")
    link_parser.add_argument("path", help="Path to inspect")
    link_parser.add_argument(
        "--max-depth", type=int, metavar="N", help="Maximum number of hops to follow"
    )
    return link_parser
