"""Logging configuration using structlog.

Events go to stdout and to an append-only activity log file. Both sinks
are stdlib handlers fed through structlog's ProcessorFormatter, so third
party libraries (httpx, apscheduler) land in the same stream.
"""

import logging
import sys

import structlog

from pumpalert.config.settings import Settings, get_settings

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog for the application."""
    settings = settings or get_settings()

    log_level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Use JSON in production, pretty print in debug
    console_processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if settings.debug:
        console_processors.append(structlog.dev.ConsoleRenderer())
    else:
        console_processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=console_processors,
        )
    )

    # Activity log is always JSON lines, one event per line
    file_handler = logging.FileHandler(settings.activity_log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console_handler)
    root.addHandler(file_handler)
    root.setLevel(log_level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
