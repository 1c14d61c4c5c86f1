"""Tests for logging configuration."""

import logging

from animal_identifier.app_logging import configure_logging


def test_configure_logging_is_idempotent() -> None:
    logger = logging.getLogger("animal_identifier")
    logger.handlers.clear()

    configure_logging()
    configure_logging(level=logging.DEBUG)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_configure_logging_accepts_level_names() -> None:
    configure_logging("debug")
    assert logging.getLogger("animal_identifier").level == logging.DEBUG

    configure_logging("not-a-level")
    assert logging.getLogger("animal_identifier").level == logging.INFO


def test_http_client_request_logs_are_quieted() -> None:
    logging.getLogger("httpx").setLevel(logging.INFO)

    configure_logging(logging.DEBUG)

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
