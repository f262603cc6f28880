"""Logging setup shared by the headless runner and the web server."""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

LOG_LEVEL_ENV = "LIFESIM_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def resolve_level(level: Optional[Union[str, int]] = None) -> int:
    """Turn ``level``, ``$LIFESIM_LOG_LEVEL`` or the INFO default into a level number."""
    raw = level if level is not None else os.getenv(LOG_LEVEL_ENV) or "INFO"
    if isinstance(raw, int):
        return raw
    resolved = logging.getLevelName(raw.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {raw!r}")
    return resolved


def configure_logging(level: Optional[Union[str, int]] = None, *, server: bool = False) -> logging.Logger:
    """Route ``lifesim.*`` records to stderr at the resolved level.

    Third-party loggers stay at WARNING. With ``server`` set, uvicorn's error
    log follows the package level while the per-request access log is held
    at WARNING or above so it does not bury tick and lifecycle messages.
    """
    resolved = resolve_level(level)
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, datefmt=DATE_FORMAT)

    package_logger = logging.getLogger("lifesim")
    package_logger.setLevel(resolved)

    if server:
        logging.getLogger("uvicorn.error").setLevel(resolved)
        logging.getLogger("uvicorn.access").setLevel(max(resolved, logging.WARNING))

    package_logger.debug("logging configured at %s", logging.getLevelName(resolved))
    return package_logger
