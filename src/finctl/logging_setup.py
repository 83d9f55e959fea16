"""Logging for finctl.

Modules log through ``get_logger(__name__)`` and stay silent until the CLI
calls ``configure_logging``, which gives the ``finctl`` logger one stream
handler. Calling it again retunes that handler instead of adding another.
"""

import logging
import os
import sys
from typing import IO, Optional, Union

PACKAGE_LOGGER = "finctl"
LEVEL_ENV_VAR = "FINCTL_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_HANDLER_NAME = "finctl-cli"
_DEFAULT_STREAM = sys.stderr


def resolve_level(level: Union[int, str, None]) -> int:
    """Turn a level name or number into a logging level.

    ``None`` falls back to FINCTL_LOG_LEVEL, then WARNING. Unknown names
    also mean WARNING.
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR)
    if isinstance(level, int):
        return level
    if not level:
        return logging.WARNING
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    mapped = logging.getLevelName(name)
    return mapped if isinstance(mapped, int) else logging.WARNING


def _package_handler(logger: logging.Logger) -> Optional[logging.Handler]:
    for handler in logger.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return handler
    return None


def configure_logging(
    level: Union[int, str, None] = None, stream: Optional[IO[str]] = None
) -> logging.Logger:
    """Send finctl log records to a stream, stderr unless one is given."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = _package_handler(logger)
    if handler is None:
        handler = logging.StreamHandler(stream or _DEFAULT_STREAM)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    elif stream is not None:
        handler.setStream(stream)

    resolved = resolve_level(level)
    handler.setLevel(resolved)
    logger.setLevel(resolved)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not package_logger.handlers:
        package_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
