"""
Logging setup for report runs.

The analytics modules only emit structlog events. An application calls
configure_logging once at start-up to choose the level and rendering of
those events; the engine binds the running report's name into the
context of each event.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from retail_analytics.config.settings import Settings, get_settings


def _renderer(log_format: str, stream: TextIO):
    if log_format == "json":
        return JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def configure_logging(
    settings: Optional[Settings] = None,
    log_level: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Route structlog and stdlib records through a single handler.

    Args:
        settings: Source of the monitoring section, defaults to get_settings()
        log_level: Overrides the configured level (DEBUG, INFO, WARNING, ERROR)
        stream: Destination of log lines, stderr by default so that report
            output written to stdout stays machine readable
    """
    settings = settings or get_settings()
    monitoring = settings.monitoring
    level = (log_level or monitoring.log_level).upper()
    numeric_level = logging.getLevelName(level)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    stream = stream or sys.stderr

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors + [
            ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = ProcessorFormatter(
        processor=_renderer(monitoring.log_format, stream),
        foreign_pre_chain=shared_processors,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    structlog.get_logger(__name__).debug(
        "Logging configured",
        level=level,
        format=monitoring.log_format,
        environment=settings.app_env,
    )
