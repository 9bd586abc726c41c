"""Centralized logging configuration for hosts embedding the engine."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog

from windowsync.models.config import LoggingConfig


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    log_file: str | None = None,
) -> None:
    """
    Configure structured logging for the engine and its host.

    Every engine module logs through ``structlog.stdlib.get_logger()`` with
    snake_case event names, so this only needs to run once per process. At
    INFO a host sees one ``batch_committed`` and one ``acknowledgment_accepted``
    entry per cycle; ``stale_acknowledgment_ignored`` is logged at WARNING and
    ``batch_build_failed`` at ERROR. DEBUG adds per-flush decisions such as
    ``flush_skipped_no_changes`` and ``flush_deferred_awaiting_ack``.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON logs. If False, use console format.
        log_file: Optional path to a rotating log file in addition to stdout.

    Example:
        >>> configure_logging(log_level="DEBUG", json_logs=False)
        >>> engine.request_range(0, 50)
        >>> engine.flush()  # logs batch_committed with update_id, range and size
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        stream=sys.stdout,
    )

    if log_file:
        # 10MB per file, 5 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
        )
        file_handler.setLevel(numeric_level)
        logging.root.addHandler(file_handler)

    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ],
        ),
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging_from_config(config: LoggingConfig) -> None:
    """
    Configure logging from the ``logging`` section of the application config.

    Args:
        config: Validated logging settings, e.g. ``ConfigLoader().load_config().logging``

    Example:
        >>> app_config = ConfigLoader().load_config()
        >>> configure_logging_from_config(app_config.logging)
        >>> engine = create_engine(provider, transport, config=app_config.sync)
    """
    configure_logging(
        log_level=config.log_level,
        json_logs=config.json_logs,
        log_file=config.log_file,
    )
