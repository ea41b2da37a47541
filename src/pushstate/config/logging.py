"""Logging setup for the command line."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers that would otherwise echo full request URLs, tokens included.
_NOISY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "httpx_retries")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once.

    Pass ``force=True`` to reconfigure during tests. Transport libraries stay at
    WARNING or above whatever ``level`` is, so DEBUG shows this package's remote
    calls without leaking credentials.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
