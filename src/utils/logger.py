"""Logger factory for the story extractor and UI server"""

import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "time=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"

# Suppress request-level INFO messages from the HTTP client stack
for _noisy in ("httpx", "httpcore", "openai"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)


def get_logger(
    name: str = "news", verbose: bool = False, stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Create a named logger writing to stderr.

    Calling this again for the same name reconfigures the level and replaces
    the handler instead of stacking handlers.

    Args:
        name: Logger name
        verbose: DEBUG level when True, INFO otherwise
        stream: Output stream (default: sys.stderr)

    Returns:
        Configured logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
