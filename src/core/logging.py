"""
structlog setup for the rules engine.

The engine is a library: it never configures logging on import. Hosts call
configure_logging() (or configure_from_settings()) once; until then
structlog's defaults apply.

Per-scan fields are bound with scan_context() so every decision logged
while a scan is processed carries the same scan_id:

    with scan_context(scan_id="scan-42", scan_category="tops"):
        apply_trust_filter(...)
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

import structlog
from structlog.types import Processor


def build_processors(json_logs: bool, include_timestamp: bool = True) -> List[Processor]:
    """Processor chain ending in a JSON or console renderer."""
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        ))
    return processors


def configure_logging(
    json_logs: bool = False,
    log_level: str = "INFO",
    include_timestamp: bool = True,
) -> None:
    """
    Route structlog through stdlib logging at ``log_level``.

    Args:
        json_logs: JSON lines for production, console output otherwise
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        include_timestamp: Prefix ISO timestamps
    """
    level = getattr(logging, log_level.upper())
    structlog.configure(
        processors=build_processors(json_logs, include_timestamp),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(level)


def configure_from_settings() -> None:
    """Configure logging from LOG_LEVEL / JSON_LOGS."""
    from config.settings import get_settings

    settings = get_settings()
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def scan_context(**fields: Any) -> Iterator[None]:
    """
    Bind per-scan fields to every log line emitted inside the block.

    None values are skipped. Previous bindings are restored on exit, so
    nested scans do not leak into each other.
    """
    bound = {k: v for k, v in fields.items() if v is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


class LoggerMixin:
    """Gives a class a ``logger`` named after the class."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(self.__class__.__name__)
