"""Structured logging for the MerchantGuard MCP server.

All output goes to stderr: on the stdio transport stdout carries the
protocol stream and must never receive log lines.
"""

import logging
import logging.config
import sys
from typing import Any, Dict, cast

import structlog
from structlog.types import FilteringBoundLogger

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

SENSITIVE_KEYS = {"api_key", "apikey", "authorization", "x-api-key", "token", "secret"}


def scrub_sensitive_data(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Scrub credentials from log entries."""

    def scrub(data: Dict[str, Any]) -> Dict[str, Any]:
        scrubbed = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_KEYS:
                scrubbed[key] = "[SCRUBBED]"
            elif isinstance(value, dict):
                scrubbed[key] = scrub(value)
            else:
                scrubbed[key] = value
        return scrubbed

    return scrub(event_dict)


def configure_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """
    Configure structlog on top of the standard logging module.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: ``json`` or ``console``
    """
    level = log_level.upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"log_level must be one of {list(VALID_LOG_LEVELS)}")

    renderer: Any
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": renderer,
                    "foreign_pre_chain": [
                        structlog.stdlib.add_log_level,
                        structlog.processors.TimeStamper(fmt="iso"),
                    ],
                },
            },
            "handlers": {
                "default": {
                    "level": level,
                    "class": "logging.StreamHandler",
                    "formatter": "structured",
                    "stream": sys.stderr,
                },
            },
            "loggers": {
                "": {
                    "handlers": ["default"],
                    "level": level,
                    "propagate": True,
                },
            },
        }
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            scrub_sensitive_data,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a structured logger (typically ``get_logger(__name__)``)."""
    return cast(FilteringBoundLogger, structlog.get_logger(name))
