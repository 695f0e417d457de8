import io
import logging

import pytest

from statement_converter.logging_setup import configure_logging, get_logger


def _package_logger() -> logging.Logger:
    return logging.getLogger("statement_converter")


def test_unknown_env_level_falls_back_to_info(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STATEMENT_CONVERTER_LOG_LEVEL", "verbose")

    configure_logging(stream=io.StringIO())

    assert _package_logger().level == logging.INFO


def test_env_level_name_is_case_insensitive(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STATEMENT_CONVERTER_LOG_LEVEL", " debug ")

    configure_logging(stream=io.StringIO())

    assert _package_logger().level == logging.DEBUG


def test_explicit_level_wins_over_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STATEMENT_CONVERTER_LOG_LEVEL", "DEBUG")

    configure_logging("warning", stream=io.StringIO())

    assert _package_logger().level == logging.WARNING


def test_configured_logger_writes_structured_events_once():
    buf = io.StringIO()
    configure_logging(logging.INFO, fmt="%(levelname)s %(message)s", stream=buf)
    configure_logging(logging.DEBUG, stream=io.StringIO())

    get_logger("statement_converter.test").info("render:done transactions=%d", 2)

    assert buf.getvalue() == "INFO render:done transactions=2\n"
    assert _package_logger().propagate is False
