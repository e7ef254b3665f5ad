"""Centralized logging for the AEGIS engines.

Implements LoggerProtocol on top of structlog and provides contextvars
based request scoping so evaluators running concurrently inside one
request share the same bound context.

Usage:
    from aegis_core.logging import configure_logging, create_logger

    # At application startup (once)
    configure_logging(level="INFO", json_output=True)

    # Create logger for injection
    logger = create_logger("validation_service")
    service = ValidationService(..., logger=logger)
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Generator, Optional

import structlog

from aegis_core.protocols import LoggerProtocol, RequestContext

# Module state
_CONFIGURED = False

_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context",
    default=None,
)

_current_logger: ContextVar[Optional[LoggerProtocol]] = ContextVar(
    "current_logger",
    default=None,
)


class Logger:
    """LoggerProtocol implementation backed by structlog."""

    def __init__(
        self,
        base_logger: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self._logger = base_logger or structlog.get_logger()
        self._context = context or {}

        if self._context:
            self._logger = self._logger.bind(**self._context)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._logger.debug(msg, **kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._logger.info(msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._logger.warning(msg, **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._logger.error(msg, **kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.exception(msg, **kwargs)

    def bind(self, **kwargs: Any) -> "Logger":
        """Create child logger with additional context."""
        new_context = {**self._context, **kwargs}
        return Logger(
            base_logger=structlog.get_logger(),
            context=new_context,
        )


def configure_logging(
    level: str = "INFO",
    *,
    json_output: bool = True,
) -> None:
    """Configure stdlib logging and structlog.

    Call once at application startup; later calls are ignored.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR)
        json_output: If True, output JSON; if False, console format
    """
    global _CONFIGURED

    if _CONFIGURED:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        stream=sys.stdout,
    )

    # Silence noisy libraries
    for noisy in ["httpx", "httpcore", "uvicorn.access"]:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    if json_output:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True


def create_logger(component: str, **context: Any) -> LoggerProtocol:
    """Create a logger for dependency injection.

    Args:
        component: Component name (e.g., "validation_service", "security_layer")
        **context: Additional context to bind
    """
    return Logger(context={"component": component, **context})


def get_current_logger() -> LoggerProtocol:
    """Context-bound logger, or a default one outside a request scope."""
    logger = _current_logger.get()
    if logger is None:
        return Logger()
    return logger


def set_current_logger(logger: LoggerProtocol) -> None:
    _current_logger.set(logger)


def get_component_logger(
    component: str,
    logger: Optional[LoggerProtocol] = None,
) -> LoggerProtocol:
    """Get a logger bound to a component name.

    This is the canonical way to initialize a logger in services and
    evaluators.

    Args:
        component: Component name (e.g., "GovernanceLayer")
        logger: Optional injected logger. If None, uses context logger.
    """
    base_logger = logger or get_current_logger()
    return base_logger.bind(component=component)


def get_request_context() -> Optional[RequestContext]:
    return _request_context.get()


@contextmanager
def request_scope(
    ctx: RequestContext,
    logger: LoggerProtocol,
) -> Generator[RequestContext, None, None]:
    """Set request context and current logger for the scope.

    Previous values are restored on exit. The request fields are also
    bound into structlog's contextvars so every log line emitted inside
    the scope carries them.
    """
    token_ctx = _request_context.set(ctx)
    token_log = _current_logger.set(logger)
    tokens = structlog.contextvars.bind_contextvars(
        request_id=ctx.request_id,
        operation=ctx.operation,
    )

    try:
        yield ctx
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
        _request_context.reset(token_ctx)
        _current_logger.reset(token_log)


__all__ = [
    "configure_logging",
    "create_logger",
    "get_component_logger",
    "Logger",
    "get_current_logger",
    "set_current_logger",
    "get_request_context",
    "request_scope",
]
