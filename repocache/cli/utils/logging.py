import logging
import sys


logger = logging.getLogger("repocache")


def configure_logging(debug: bool):
    """
    Configures the logging system based on the debug flag.

    Log messages go to stderr: stdout carries the documents printed by commands.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.hasHandlers():
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
