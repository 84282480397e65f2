"""Simple logging setup - all engine logs go to stderr."""

import logging
import sys


def setup_logging(verbose: bool = False):
    """Setup logging to stderr. INFO when verbose, ERROR otherwise."""
    level = logging.INFO if verbose else logging.ERROR
    logging.basicConfig(
        level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr, force=True
    )
