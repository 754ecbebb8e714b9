"""Tests for logging setup."""

import logging
import logging.handlers

import pytest

from intent_router.utils.logging_config import IntentRouterLogger, get_logger, setup_logging


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger("intent_router")
    saved = (logger.level, list(logger.handlers), logger.propagate)
    yield logger
    for handler in logger.handlers:
        if handler not in saved[1]:
            handler.close()
    logger.setLevel(saved[0])
    logger.handlers = saved[1]
    logger.propagate = saved[2]


def test_setup_logging_with_file(tmp_path, restore_package_logger):
    log_file = tmp_path / "logs" / "router.log"

    setup_logging(level="debug", log_file=str(log_file))
    get_logger("intent_router.tests").debug("written to file")
    for handler in restore_package_logger.handlers:
        handler.flush()

    assert IntentRouterLogger.is_configured()
    assert restore_package_logger.level == logging.DEBUG
    assert "written to file" in log_file.read_text(encoding="utf-8")


def test_setup_logging_console_only(restore_package_logger):
    setup_logging(level="WARNING")

    assert restore_package_logger.level == logging.WARNING
    assert all(isinstance(h, logging.StreamHandler) for h in restore_package_logger.handlers)
    assert not any(
        isinstance(h, logging.handlers.RotatingFileHandler) for h in restore_package_logger.handlers
    )


def test_default_config_is_not_mutated(restore_package_logger):
    setup_logging(level="ERROR", json_format=True)
    assert IntentRouterLogger.DEFAULT_CONFIG["loggers"]["intent_router"]["level"] == "INFO"
    assert "file" in IntentRouterLogger.DEFAULT_CONFIG["handlers"]
