"""Centralized logging configuration for the ``statement_converter`` package.

Two public helpers:

- ``configure_logging(...)``: attach a single ``StreamHandler`` to the package
  root logger (``"statement_converter"``). Called once by entrypoints (the
  CLI) at process startup.
- ``get_logger(name)``: acquire a logger by name, attaching a ``NullHandler``
  to the package root logger when nothing has been configured yet.

Library modules never attach their own handlers. They call
``get_logger("statement_converter.<module>")`` and rely on the host
application for configuration.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "statement_converter"
_LEVEL_ENV_VAR = "STATEMENT_CONVERTER_LOG_LEVEL"
_CONFIGURED = False


def _resolve_level(level: int | str | None) -> int:
    """Map an explicit level, or the env override, to a numeric level.

    Unknown names resolve to INFO.
    """

    if level is None:
        level = os.getenv(_LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level-name string. If ``None``, the
        ``STATEMENT_CONVERTER_LOG_LEVEL`` environment variable is used when
        set, otherwise ``logging.INFO``.
    fmt:
        Optional format string. Defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        Output stream for the single ``StreamHandler`` (``sys.stderr``).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    )

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # Avoid double emission via the root logger.
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, ensuring silent defaults for library use."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
