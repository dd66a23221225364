"""
Centralized Logging Configuration.

All modules log through structlog loggers obtained from get_logger().
Defaults come from config/settings/logging.yaml, read through the
validated LoggingSchema on the application config.

Structured fields in every JSON log record:
    timestamp   - ISO 8601 UTC timestamp
    level       - Log level
    logger      - Module path (e.g., modules.mobile.providers.notes)
    event       - Log message
    func_name   - Function that emitted the log
    lineno      - Line number in source file
    source      - Origin context (cli, mobile, store), when set

Usage:
    from modules.mobile.core.logging import get_logger, setup_logging

    setup_logging()                                  # logging.yaml defaults
    setup_logging(level="DEBUG", format_type="console")

    logger = get_logger(__name__)
    logger.info("Message", extra={"key": "value"})

Log File:
    logs/system.jsonl: all records as JSON lines, when the file handler is enabled
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import Processor

from modules.mobile.core.config import find_project_root, get_app_config
from modules.mobile.core.config_schema import FileHandlerSchema

# Values accepted by log_with_source()
VALID_SOURCES = frozenset({"cli", "mobile", "store", "internal"})

# Third-party loggers that are too chatty below WARNING
QUIET_LOGGERS = ("redis", "asyncio")


def _resolve_log_path(configured_path: str) -> Path:
    """Resolve the log file path relative to project root."""
    return find_project_root() / configured_path


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]


def _file_handler(file_config: FileHandlerSchema, formatter: logging.Formatter) -> logging.Handler:
    log_path = _resolve_log_path(file_config.path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=file_config.max_bytes,
        backupCount=file_config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    Configure structlog and the root logger.

    Arguments left as None fall back to logging.yaml. Calling this again
    replaces the handlers installed by the previous call.

    Args:
        level: Log level name (DEBUG, INFO, ...)
        format_type: 'json' or 'console' for the console handler
        enable_file_logging: Whether to write the rotating JSONL file
    """
    config = get_app_config().logging

    log_level = getattr(logging, (level or config.level).upper())
    use_console_renderer = (format_type or config.format) == "console"
    file_enabled = (
        enable_file_logging if enable_file_logging is not None
        else config.handlers.file.enabled
    )

    shared_processors = _shared_processors()
    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    json_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    )
    if use_console_renderer:
        console_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
            foreign_pre_chain=shared_processors,
        )
    else:
        console_formatter = json_formatter

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if config.handlers.console.enabled:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if file_enabled:
        root_logger.addHandler(_file_handler(config.handlers.file, json_formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name, typically __name__

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log a message tagged with an explicit source.

    For code running detached from the caller's bound context, such as
    store watch tasks.

    Raises:
        ValueError: If source is not one of VALID_SOURCES
        AttributeError: If level is not a logger method

    Example:
        log_with_source(logger, "store", "debug", "Watch opened", channel="notekeeper:notes:changes")
    """
    if source not in VALID_SOURCES:
        raise ValueError(f"Unknown log source: {source}")
    log_method = getattr(logger, level.lower())
    log_method(message, source=source, **kwargs)
