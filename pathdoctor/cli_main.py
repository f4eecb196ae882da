"""pathdoctor CLI - Main entry point.

Uses the DoctorCLI facade from pathdoctor.cli which delegates to modular
handlers.
"""

import logging
import sys

from pathdoctor.branding import console, displayable, px_print, show_banner
from pathdoctor.exceptions import DoctorError
from pathdoctor.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for pathdoctor CLI."""
    # Import facade here; pathdoctor.cli re-exports this function
    from pathdoctor.cli import DoctorCLI
    from pathdoctor.config import load_config

    parser = DoctorCLI().create_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    if not args.command:
        show_banner()
        parser.print_help()
        return 0

    try:
        config = load_config(args.config)
        logger.debug("Effective config: %s", config.as_dict())
        cli = DoctorCLI(verbose=args.verbose, config=config)
        result = cli.dispatch(args)
        return result if result is not None else 0
    except DoctorError as e:
        px_print(str(e), "error")
        return e.exit_code
    except KeyboardInterrupt:
        console.print("\nInterrupted")
        return 130
    except Exception as e:
        console.print(f"Error: {displayable(str(e))}", style="red", markup=False)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
