"""Logging helpers for libprovision.

The provisioner is embedded in host applications, so configuration only
touches the ``libprovision`` logger hierarchy and never the root logger.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

PACKAGE_LOGGER_NAME = "libprovision"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def level_from_flags(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> int:
    """Map CLI flags to a logging level.

    Precedence:
    - quiet → ERROR
    - debug → DEBUG
    - verbose → INFO
    - default → WARNING
    """
    if quiet:
        return logging.ERROR
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def configure_logging(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> None:
    """Configure the package logger level and attach a stderr handler once."""
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(level_from_flags(debug=debug, verbose=verbose, quiet=quiet))

    if not any(getattr(h, "_libprovision", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._libprovision = True  # type: ignore[attr-defined]
        logger.addHandler(handler)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-level logger."""

    return logging.getLogger(name if name is not None else PACKAGE_LOGGER_NAME)
