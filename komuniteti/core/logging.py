"""
Logging for the maintenance engine.

Two front ends share the standard library handlers configured from
komuniteti.config.logging:

- ``get_logger`` returns a LoggerAdapter for services and repositories,
  which pass context through ``extra``.
- ``structlog.get_logger`` is used by the gateway and by
  ``log_execution_time``, which bind key/value context.

Both attach the current HTTP request id and gateway operation id.
"""

import asyncio
import logging
import logging.config
import time
from contextvars import ContextVar
from functools import wraps
from typing import Any, MutableMapping, Optional, Tuple

import structlog

from komuniteti.config.logging import build_logging_config
from komuniteti.config.settings import Settings, get_settings

SERVICE_NAME = "komuniteti-maintenance"

request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
operation_id: ContextVar[Optional[str]] = ContextVar("operation_id", default=None)

# Seconds; upper bounds of the "fast" and "moderate" categories
FAST_CALL_SECONDS = 1.0
MODERATE_CALL_SECONDS = 5.0


def correlation_ids() -> dict:
    ids = {}
    if request_id.get():
        ids["request_id"] = request_id.get()
    if operation_id.get():
        ids["operation_id"] = operation_id.get()
    return ids


def add_correlation_ids(environment: str):
    """structlog processor factory stamping service, environment and ids."""

    def processor(logger, method_name, event_dict):
        for key, value in correlation_ids().items():
            event_dict.setdefault(key, value)
        event_dict["service"] = SERVICE_NAME
        event_dict["environment"] = environment
        return event_dict

    return processor


def categorize_execution_time(logger, method_name, event_dict):
    exec_time = event_dict.get("execution_time")
    if exec_time is None:
        return event_dict
    if exec_time > MODERATE_CALL_SECONDS:
        event_dict["performance_category"] = "slow"
    elif exec_time > FAST_CALL_SECONDS:
        event_dict["performance_category"] = "moderate"
    else:
        event_dict["performance_category"] = "fast"
    return event_dict


class LoggerAdapter(logging.LoggerAdapter):
    """Merges correlation ids into each record's ``extra``."""

    def __init__(self, logger: logging.Logger, context: Optional[dict] = None):
        super().__init__(logger, context or {})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = {**correlation_ids(), **self.extra, **(kwargs.get("extra") or {})}
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name or "komuniteti"))


def log_execution_time(logger_name: Optional[str] = None):
    """
    Decorator logging how long a function or coroutine took.

    Successful calls are logged at DEBUG, failures at WARNING with the
    exception type; the exception itself propagates.
    """

    def decorator(func):
        logger = structlog.get_logger(logger_name or func.__module__)

        def report(started: float, error: Optional[BaseException] = None) -> None:
            execution_time = time.perf_counter() - started
            if error is None:
                logger.debug("function executed", function=func.__name__, execution_time=execution_time)
            else:
                logger.warning(
                    "function execution failed",
                    function=func.__name__,
                    execution_time=execution_time,
                    error_type=type(error).__name__,
                )

        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    report(started, e)
                    raise
                report(started)
                return result

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                report(started, e)
                raise
            report(started)
            return result

        return sync_wrapper

    return decorator


def configure_structlog(settings: Settings) -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.processors.KeyValueRenderer(key_order=["event"])
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            add_correlation_ids(settings.ENVIRONMENT),
            categorize_execution_time,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Apply the handler configuration and, when enabled, structlog."""
    settings = settings or get_settings()
    logging.config.dictConfig(build_logging_config(settings))
    if settings.ENABLE_STRUCTURED_LOGGING:
        configure_structlog(settings)

    get_logger(__name__).debug(
        "Logging configured",
        extra={"log_level": settings.LOG_LEVEL, "log_format": settings.LOG_FORMAT},
    )


__all__ = [
    "get_logger",
    "setup_logging",
    "log_execution_time",
    "LoggerAdapter",
    "request_id",
    "operation_id",
]
