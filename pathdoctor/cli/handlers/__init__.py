"""pathdoctor CLI Handlers.

Modular command handlers for pathdoctor CLI.
"""

from pathdoctor.cli.handlers.diagnose import DiagnoseHandler, add_diagnose_parser
from pathdoctor.cli.handlers.link import LinkHandler, add_link_parser
from pathdoctor.cli.handlers.path import PathHandler, add_path_parser
from pathdoctor.cli.handlers.which import WhichHandler, add_which_parser

__all__ = [
    # Diagnose
    "DiagnoseHandler",
    "add_diagnose_parser",
    # Link
    "LinkHandler",
    "add_link_parser",
    # Path
    "PathHandler",
    "add_path_parser",
    # Which
    "WhichHandler",
    "add_which_parser",
]
