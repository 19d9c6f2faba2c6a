"""Logging setup with structlog.

stdout carries the MCP stdio protocol, so every log line goes to stderr.
"""

from __future__ import annotations

import logging
import sys

import structlog

LOGGER_ROOT = "argocd_mcp"


def setup_logging(level: str = "info", log_format: str = "json") -> structlog.stdlib.BoundLogger:
    """Configure structured logging for the server and CLI.

    Args:
        level: Log level name (debug, info, warning, error).
        log_format: "json" for JSON lines, anything else for plain console text.

    Returns:
        Logger bound to the package root.
    """
    log_level = logging.getLevelName(level.upper())
    invalid_level = not isinstance(log_level, int)
    if invalid_level:
        log_level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger(LOGGER_ROOT)
    root.handlers[:] = [handler]
    root.setLevel(log_level)
    root.propagate = False

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    log = structlog.get_logger(LOGGER_ROOT)
    if invalid_level:
        log.warning("logging.invalid_level", level=level, using="info")
    log.debug("logging.initialized", level=logging.getLevelName(log_level), format=log_format)
    return log


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger named ``argocd_mcp.<name>``."""
    return structlog.get_logger(f"{LOGGER_ROOT}.{name}")


__all__ = ["setup_logging", "get_logger"]
