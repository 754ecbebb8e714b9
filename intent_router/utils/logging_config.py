"""
Logging configuration for intent-router.

This module provides centralized logging configuration with consistent
formatting across all modules. Library modules only call
``logging.getLogger(__name__)``; entry points call :func:`setup_logging` once.
"""

import copy
import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional


class IntentRouterLogger:
    """Centralized logger configuration for intent-router."""

    # Default logging configuration
    DEFAULT_CONFIG: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "json": {
                "format": '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "function": "%(funcName)s", "line": %(lineno)d, "message": "%(message)s"}',
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "simple",
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "DEBUG",
                "formatter": "detailed",
                "filename": "logs/intent_router.log",
                "maxBytes": 10 * 1024 * 1024,  # 10MB
                "backupCount": 5,
            },
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
        "loggers": {
            "intent_router": {"level": "INFO", "handlers": ["console"], "propagate": False},
            # Third-party HTTP clients are chatty at INFO
            "httpx": {"level": "WARNING"},
            "openai": {"level": "WARNING"},
        },
    }

    _configured = False

    @classmethod
    def configure(
        cls,
        level: str = "INFO",
        log_file: Optional[str] = None,
        json_format: bool = False,
    ) -> None:
        """
        Configure logging for intent-router.

        Args:
            level: Package logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Path to log file (if None, only console logging)
            json_format: Whether to use JSON format for logs
        """
        config = copy.deepcopy(cls.DEFAULT_CONFIG)
        config["loggers"]["intent_router"]["level"] = level.upper()

        if log_file:
            config["handlers"]["file"]["filename"] = log_file
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            config["loggers"]["intent_router"]["handlers"].append("file")
        else:
            del config["handlers"]["file"]

        if json_format:
            for handler_config in config["handlers"].values():
                handler_config["formatter"] = "json"

        logging.config.dictConfig(config)
        cls._configured = True

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured


def get_logger(name: str) -> logging.Logger:
    """
    Convenience function to get a logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Package logging level
        log_file: Path to log file
        json_format: Whether to use JSON format
    """
    IntentRouterLogger.configure(level=level, log_file=log_file, json_format=json_format)
