"""Structured logging configuration.

This module provides:
- Structured logging via structlog with JSON output for production
- Timing utilities for performance tracking
- Exception logging helpers with full context
"""

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import Processor

from ledger_recon.config import settings


def _build_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _select_renderer() -> Processor:
    if settings.debug:
        # Human-readable logs for development
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging() -> None:
    """Configure structlog for structured logging through the stdlib root logger."""

    processors = _build_processors()
    renderer = _select_renderer()

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=processors,
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(
        handlers=[handler],
        level=logging.DEBUG if settings.debug else logging.INFO,
    )


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a structured logger."""
    return structlog.get_logger(name)


# =============================================================================
# Timing Utilities
# =============================================================================


@contextmanager
def log_timing(
    operation: str,
    logger: BoundLogger | None = None,
    level: str = "info",
    **context: Any,
) -> Iterator[dict[str, Any]]:
    """Context manager to log operation timing.

    Usage:
        with log_timing("reconcile", logger=logger, entries=len(entries)) as timing:
            result = engine.run(...)
            timing["matched"] = len(result.matched)

    Args:
        operation: Name of the operation being timed
        logger: Logger instance (uses module logger if not provided)
        level: Log level to use (default: info)
        **context: Additional context to include in the log

    Yields:
        A dict that can be updated with additional context during the operation.
        The dict will include 'duration_ms' after the operation completes.
    """
    log = logger or get_logger(__name__)
    start = time.perf_counter()
    result_context: dict[str, Any] = {}

    try:
        yield result_context
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        result_context["duration_ms"] = round(duration_ms, 2)

        extra_context = {k: v for k, v in result_context.items() if k != "duration_ms"}

        log_method = getattr(log, level, log.info)
        log_method(
            f"{operation} completed",
            operation=operation,
            duration_ms=result_context["duration_ms"],
            **context,
            **extra_context,
        )


# =============================================================================
# Exception Logging Helpers
# =============================================================================


def log_exception(
    logger: BoundLogger,
    exc: BaseException,
    context: str,
    *,
    level: str = "error",
    include_traceback: bool = True,
    **extra: Any,
) -> None:
    """Log an exception with full context.

    Usage:
        except ValueError as exc:
            log_exception(logger, exc, "Reconciliation run failed", entries=len(entries))

    Args:
        logger: Logger instance
        exc: The exception to log
        context: Human-readable context message
        level: Log level (default: error)
        include_traceback: Whether to include full traceback (default: True)
        **extra: Additional context to include
    """
    log_method = getattr(logger, level, logger.error)

    log_kwargs: dict[str, Any] = {
        "error": str(exc),
        "error_type": type(exc).__name__,
        "error_module": type(exc).__module__,
        **extra,
    }

    if include_traceback:
        log_method(context, exc_info=exc, **log_kwargs)
    else:
        log_method(context, **log_kwargs)
