"""Structured logging configuration using structlog."""

import inspect
import logging
import os
import socket

import structlog

from memocache.config import settings

# Cache hostname and PID at module load time (they don't change)
_HOSTNAME = socket.gethostname()
_PID = os.getpid()

# Caller info walks the stack on every log call; only enable in debug mode
_ENABLE_CALLER_INFO = settings.debug


def _add_caller_info(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """
    Add caller information (class, method, line number) to the log event.

    Only enabled in debug mode since it walks the call stack.
    """
    if not _ENABLE_CALLER_INFO:
        return event_dict

    frame = inspect.currentframe()
    try:
        # Skip frames: _add_caller_info -> structlog internals -> cache logging -> caller
        for _ in range(12):
            if frame is None:
                break
            frame = frame.f_back
            if frame is None:
                break

            module = frame.f_globals.get("__name__", "")
            if module.startswith(
                ("structlog", "logging", "memocache.logger", "memocache.cache.logging")
            ):
                continue

            func_name = frame.f_code.co_name
            lineno = frame.f_lineno
            filename = os.path.basename(frame.f_code.co_filename)

            local_vars = frame.f_locals
            class_name = None
            if "self" in local_vars:
                class_name = type(local_vars["self"]).__name__
            elif "cls" in local_vars:
                class_name = local_vars["cls"].__name__

            if class_name:
                event_dict["caller"] = f"{filename}:{class_name}.{func_name}:{lineno}"
            else:
                event_dict["caller"] = f"{filename}:{func_name}:{lineno}"
            break
    finally:
        del frame

    return event_dict


def _format_log_message(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> str:
    """
    Format log messages as a single line.

    Produces output like: INFO:     [hostname:pid] [file:Class.method:line] event_name key=value
    """
    level = event_dict.pop("level", "info").upper()
    event = event_dict.pop("event", "")
    caller = event_dict.pop("caller", "")

    context_parts = [f"{k}={v}" for k, v in event_dict.items()]
    context_str = " ".join(context_parts)

    prefix = f"{level}:     [{_HOSTNAME}:{_PID}]"
    if caller:
        prefix = f"{prefix} [{caller}]"

    if context_str:
        return f"{prefix} {event} {context_str}"
    return f"{prefix} {event}"


def setup_logging() -> None:
    """
    Configure structlog for the cache.

    Sets up structured logging with:
    - Context variable merging for caller-bound context
    - Log level filtering based on DEBUG setting
    - Single-line key=value output
    """
    log_level = logging.DEBUG if settings.debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _add_caller_info,
            _format_log_message,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,  # Allow reconfiguration
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Get a logger instance.

    Args:
        name: Optional logger name, typically __name__ of the module.

    Returns:
        A bound structlog logger instance.
    """
    return structlog.get_logger(name)
