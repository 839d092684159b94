"""Logging setup for applications embedding the cache.

The library itself only creates module loggers; call configure_logging()
from the application entry point to see their output.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

from lazycache.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Union[int, str] = LOG_LEVEL) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
