"""Pytest configuration for test isolation.

Two pieces of process-global state leak between tests unless reset:

- Environment: a developer's ``OPENAI_API_KEY`` (or a ``.env`` loaded by the
  CLI) would make detection tests reach the network. Every test starts with
  the converter's variables removed and runs from its own temporary directory
  so no stray ``.env`` is picked up.
- Logging: the CLI calls ``configure_logging()``, which attaches a handler and
  disables propagation on the package logger. That would hide records from
  ``caplog`` in later tests, so the package logger is restored after each test.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from statement_converter import logging_setup

_ENV_VARS = (
    "OPENAI_API_KEY",
    "STATEMENT_CONVERTER_MODEL",
    "STATEMENT_CONVERTER_SAMPLE_ROWS",
    "STATEMENT_CONVERTER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    logger = logging.getLogger("statement_converter")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
    logging_setup._CONFIGURED = False
