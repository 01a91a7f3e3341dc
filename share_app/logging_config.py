"""
Logging setup for the share store.

Single stdout handler on the root logger. Modules log through
``logging.getLogger(__name__)``.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level_name: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    if getattr(setup_logging, "_configured", False):
        root.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.handlers[:] = [handler]
    root.setLevel(level)
    setup_logging._configured = True
