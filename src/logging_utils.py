"""
Centralized logging and error handling utilities for the stream client.

This module provides decorators and helper functions to standardize logging
and error reporting across the ingestion pipeline.

Features:
- Structured logging with contextual information
- Transport error classification and human-readable descriptions
- Timed operation logging for async blocks and coroutines
"""

from __future__ import annotations

import functools
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from src.llm.exceptions import ChunkDecodeError, TransportError

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Type variables for generic decorators
P = ParamSpec("P")
T = TypeVar("T")
AsyncCallable = Callable[P, Awaitable[T]]

logger = structlog.get_logger(__name__)


def configure_logging(logging_config: dict[str, Any]) -> None:
    """Apply the configured level to the stdlib root logger."""
    level_name = str(logging_config.get("level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level '{level_name}'")

    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger().setLevel(level)


class StreamErrorHandler:
    """Centralized transport error handling with structured logging."""

    @staticmethod
    def classify_error(error: Exception) -> str:
        """
        Classify an error into a stable category name.

        Args:
            error: The exception to classify

        Returns:
            Error category string
        """
        if isinstance(error, TransportError):
            return error.category
        if isinstance(error, httpx.TimeoutException | TimeoutError):
            return "timeout_error"
        if isinstance(error, httpx.HTTPStatusError):
            return "http_status_error"
        if isinstance(error, httpx.NetworkError):
            return "connection_error"
        if isinstance(error, httpx.ProtocolError | httpx.StreamError):
            return "protocol_error"
        if isinstance(
            error, ChunkDecodeError | ValidationError | json.JSONDecodeError
        ):
            return "decode_error"
        if isinstance(error, ConnectionError | OSError):
            return "connection_error"
        return "unknown_error"

    @staticmethod
    def describe_error(error: Exception) -> str:
        """
        Build the human-readable description shown in the conversation.

        Args:
            error: The exception to describe

        Returns:
            Short description suitable for an error message
        """
        if isinstance(error, TransportError):
            return str(error)

        category = StreamErrorHandler.classify_error(error)
        detail = str(error) or type(error).__name__

        if isinstance(error, httpx.HTTPStatusError):
            response = error.response
            reason = response.reason_phrase or "error"
            return f"Server returned HTTP {response.status_code} {reason}"
        if category == "timeout_error":
            return f"Request timed out ({detail})"
        if category == "connection_error":
            return f"Connection failed ({detail})"
        if category == "protocol_error":
            return f"Stream interrupted ({detail})"
        return detail

    @staticmethod
    def create_transport_error(
        error: Exception,
        operation: str,
        context: dict[str, Any] | None = None,
    ) -> TransportError:
        """
        Create a TransportError with structured logging.

        Args:
            error: Original exception
            operation: Description of the operation that failed
            context: Additional context for logging

        Returns:
            TransportError carrying the category and description
        """
        if isinstance(error, TransportError):
            return error

        category = StreamErrorHandler.classify_error(error)
        status_code = (
            error.response.status_code
            if isinstance(error, httpx.HTTPStatusError)
            else None
        )

        logger.error(
            "Operation failed",
            operation=operation,
            error_type=type(error).__name__,
            error_category=category,
            error_message=str(error),
            **(context or {}),
        )

        return TransportError(
            StreamErrorHandler.describe_error(error),
            category=category,
            status_code=status_code,
        )


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
) -> AsyncIterator[Any]:
    """
    Time an async block and log its outcome under one bound logger.

    Args:
        operation: Name of the operation
        context: Additional fields bound to every log line

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(operation=operation, **(context or {}))
    operation_logger.debug("Operation started")
    start_time = time.perf_counter()

    try:
        yield operation_logger
    except Exception as e:
        operation_logger.error(
            "Operation failed",
            error_type=type(e).__name__,
            error_message=str(e),
            duration_ms=_elapsed_ms(start_time),
        )
        raise

    operation_logger.info("Operation completed", duration_ms=_elapsed_ms(start_time))


def log_operation(
    operation: str,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """Decorator running an async callable inside `operation_context`."""
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            async with operation_context(
                operation, context={"function": func.__name__}
            ):
                return await func(*args, **kwargs)

        return wrapper
    return decorator


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
