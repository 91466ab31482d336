"""
Logger Implementation
=====================

structlog configuration for RewardGuard services.

Every entry carries the service name, version and a UTC timestamp.
API keys and bearer tokens are redacted and device identifiers are
reduced to their last four characters before anything is rendered.

Version: 0.1.0
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger


DEFAULT_SERVICE_NAME = "rewardguard"
SERVICE_VERSION = "0.1.0"

REDACTED = "***REDACTED***"

# Substring match, case-insensitive
_REDACTED_KEY_PARTS = ("password", "api_key", "secret", "token", "authorization")

# Exact match, case-insensitive
_MASKED_KEYS = frozenset({"device_id", "deviceid"})

_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access", "redis")


class ServiceContext:
    """Processor stamping the owning service onto each event."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name

    def __call__(
        self,
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("service", self.service_name)
        event_dict.setdefault("version", SERVICE_VERSION)
        return event_dict


def mask_identifier(value: Any) -> str:
    """Keep the last four characters of an identifier."""
    text = str(value)
    return "****" if len(text) <= 4 else f"****{text[-4:]}"


def _scrub(data: dict[str, Any]) -> dict[str, Any]:
    scrubbed: dict[str, Any] = {}
    for key, value in data.items():
        lowered = key.lower()
        if any(part in lowered for part in _REDACTED_KEY_PARTS):
            scrubbed[key] = REDACTED
        elif lowered in _MASKED_KEYS and value is not None:
            scrubbed[key] = mask_identifier(value)
        elif isinstance(value, dict):
            scrubbed[key] = _scrub(value)
        else:
            scrubbed[key] = value
    return scrubbed


def redact_sensitive(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Redact credentials and mask device identifiers, including nested dicts."""
    return _scrub(event_dict)


def _shared_processors(service_name: str) -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        ServiceContext(service_name),
        redact_sensitive,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(json_logs: bool) -> tuple[Processor, Processor]:
    """Return the exception processor and final renderer for the output mode."""
    if json_logs:
        return structlog.processors.format_exc_info, structlog.processors.JSONRenderer()

    return structlog.dev.set_exc_info, structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(
            show_locals=False,
            max_frames=10,
        ),
    )


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    service_name: str = DEFAULT_SERVICE_NAME,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render JSON lines (production) instead of console output
        service_name: Value of the "service" field on every entry
    """
    level = logging.getLevelName(log_level.upper())

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    exc_processor, renderer = _renderer(json_logs)
    processors = [*_shared_processors(service_name), exc_processor]

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)


def get_logger(name: str | None = None) -> "BoundLogger":
    """
    Get a structured logger.

    Example:
        logger = get_logger(__name__)
        logger.info("fraud_check_completed", risk_level="low", risk_score=0)
    """
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind key/values to every log entry in the current async context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all context bound with bind_context()."""
    structlog.contextvars.clear_contextvars()
