"""Structured logging configuration using structlog."""

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog

if TYPE_CHECKING:
    from fixturekit.config.settings import LoggingConfig

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    *,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structured logging for fixture loading.

    Logs go to stderr by default so that command output on stdout stays
    machine-readable.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, output logs as JSON (useful on CI runners).
        stream: Output stream. Defaults to the current ``sys.stderr``.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """
    name = level.upper()
    if name not in LEVELS:
        msg = f"Unknown log level '{level}'. Choose from: {', '.join(LEVELS)}"
        raise ValueError(msg)
    log_level = getattr(logging, name)
    out = stream or sys.stderr

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors: list[structlog.types.Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=out.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        # module-level loggers must pick up a reconfigured stream
        cache_logger_on_first_use=False,
    )


def configure_from(config: "LoggingConfig") -> None:
    """Configure logging from the ``logging`` section of a ProviderConfig."""
    configure_logging(level=config.level, json_output=config.json_output)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__ of the module).

    Returns:
        Configured structlog logger.
    """
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind key/value context to every log event inside the block.

    Example:
        with log_context(cache_key='["json", null, "users.json"]'):
            log.info("Loaded source")  # includes cache_key

    Args:
        **kwargs: Key-value pairs to add to log context.

    Returns:
        Context manager that binds the values.
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
