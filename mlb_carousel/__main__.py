"""
Main entry point for the mlb-carousel application.
This module handles top-level exception handling and CLI invocation.
"""

import logging
import sys

from rich.console import Console

from mlb_carousel.cli.app import app
from mlb_carousel.cli.formatters import format_error_with_suggestions
from mlb_carousel.exceptions import MlbCarouselError


def main() -> None:
    """Main entry point function."""
    log = logging.getLogger("mlb_carousel")
    console = Console()

    try:
        app()
    except MlbCarouselError as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
