"""
structlog setup for site_auditor.

JSON lines for log shippers, colored key/value output for local runs.
SiteAuditor calls ensure_logging() when it is built; an application that
has already configured structlog keeps its own setup.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from site_auditor.core.config import Settings, get_settings

SEVERITIES = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}

# Chatty under a crawl; kept at WARNING in production.
QUIET_LOGGERS = ("asyncio", "httpx", "httpcore", "playwright")


def add_severity(logger: Any, method: str, event_dict: EventDict) -> EventDict:
    """Add a `severity` key that log backends (GCP, Datadog) understand."""
    event_dict["severity"] = SEVERITIES.get(method, "INFO")
    return event_dict


def _render_chain(log_format: str) -> list[Processor]:
    if log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(settings: Settings | None = None) -> None:
    """Apply LOG_LEVEL / LOG_FORMAT to structlog and stdlib logging."""
    settings = settings or get_settings()
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_severity,
        *_render_chain(settings.LOG_FORMAT),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # httpx / playwright log through stdlib
    logging.basicConfig(format="%(name)s %(levelname)s %(message)s", stream=sys.stdout, level=level)

    if settings.ENV == "production":
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def ensure_logging() -> None:
    if not structlog.is_configured():
        configure_logging()
