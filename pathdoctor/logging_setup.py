"""
Logging setup for the pathdoctor CLI.

Library modules only create loggers with logging.getLogger(__name__); this
module is the one place that attaches a handler.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "pathdoctor-rich"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Attach a Rich handler writing to stderr to the "pathdoctor" logger.

    Calling it again only updates the level, so repeated CLI invocations in
    one process (tests) do not stack handlers.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    root = logging.getLogger("pathdoctor")
    root.setLevel(level)

    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            handler.setLevel(level)
            return root

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.propagate = False
    return root
