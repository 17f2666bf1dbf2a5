"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

import structlog

LOGGER_NAME = "org_registry"

_LOGGING_INITIALISED = False
_LOG_DIR: Path | None = None


def _default_log_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "logs"


def current_log_dir() -> Path:
    return _LOG_DIR or _default_log_dir()


def configure_logging(
    verbose: bool = False, log_dir: Path | None = None
) -> structlog.stdlib.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger."""

    global _LOGGING_INITIALISED, _LOG_DIR
    if _LOGGING_INITIALISED:
        return structlog.get_logger(LOGGER_NAME)

    _LOG_DIR = log_dir or _default_log_dir()
    _LOG_DIR.mkdir(parents=True, exist_ok=True)
    registry_log = _LOG_DIR / "registry.log"
    error_log = _LOG_DIR / "error.log"
    level = "DEBUG" if verbose else "INFO"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {
                    "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": "DEBUG" if verbose else "WARNING",
                    "formatter": "plain",
                },
                "registry_file": {
                    "class": "logging.FileHandler",
                    "level": "INFO",
                    "filename": str(registry_log),
                    "formatter": "plain",
                    "encoding": "utf-8",
                },
                "error_file": {
                    "class": "logging.FileHandler",
                    "level": "ERROR",
                    "filename": str(error_log),
                    "formatter": "plain",
                    "encoding": "utf-8",
                },
            },
            "loggers": {
                LOGGER_NAME: {
                    "handlers": ["console", "registry_file", "error_file"],
                    "level": level,
                    "propagate": False,
                },
            },
        }
    )

    # Forward structlog events to stdlib; JSON rendering happens at handler level
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _LOGGING_INITIALISED = True
    return structlog.get_logger(LOGGER_NAME)


def component_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Return a logger under the application namespace bound to a component."""

    return structlog.get_logger(f"{LOGGER_NAME}.{component}").bind(component=component)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


__all__ = [
    "LOGGER_NAME",
    "component_logger",
    "configure_logging",
    "current_log_dir",
    "tail_log",
]
