"""structlog setup for the billing services.

Store and conversion events carry document ids, amounts and statuses as
keyword context. JSON output renders those as plain strings so log lines
stay machine readable; console output is meant for a developer terminal.

Logs go to stderr so CLI tables and CSV written to stdout stay clean.
"""

import logging
import sys
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from fieldwork_billing.config import Settings, get_settings

_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "asyncio")


def _stringify_domain_values(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Render ids, money and enum members as strings."""
    for key, value in event_dict.items():
        if isinstance(value, (UUID, Decimal)):
            event_dict[key] = str(value)
        elif isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _service_tag(settings: Settings) -> Processor:
    def tag(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("service", settings.app_name)
        event_dict.setdefault("environment", settings.environment.value)
        return event_dict

    return tag


def _processors(settings: Settings) -> list[Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _stringify_domain_values,
    ]
    if settings.log_format == "json":
        return [
            *shared,
            _service_tag(settings),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [*shared, structlog.dev.ConsoleRenderer(colors=settings.is_development)]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; the CLI calls it per invocation with the
    level chosen by ``--verbose``.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.value)

    structlog.configure(
        processors=_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.setLevel(level)
    # Replace rather than reuse: sys.stderr may have been swapped and the log
    # file changed since the last call.
    for handler in [h for h in root.handlers if getattr(h, "_fieldwork", False)]:
        root.removeHandler(handler)
        handler.close()
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(logging.Formatter("%(message)s"))
    _attach(root, stream)

    if settings.log_file:
        _add_file_handler(root, settings.log_file, level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def _add_file_handler(root: logging.Logger, log_file: Path, level: int) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    _attach(root, handler)


def _attach(root: logging.Logger, handler: logging.Handler) -> None:
    handler._fieldwork = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a bound logger, e.g. ``get_logger(__name__)``."""
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach key/values (request id, document id) to every later event."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind context for the duration of a ``with`` block.

    with LogContext(invoice_id=str(invoice.id)):
        store.add_payment(invoice.id, payment)
    """

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs

    def __enter__(self) -> "LogContext":
        bind_context(**self.kwargs)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        unbind_context(*self.kwargs)
