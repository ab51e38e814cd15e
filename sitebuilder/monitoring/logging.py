"""
Structured logging.

structlog renders every event as one JSON line with the request id bound by
the HTTP middleware. Library loggers (uvicorn, httpx, stripe) go through
the same root handler via python-json-logger.

Credentials never reach the log: values under keys such as ``password``,
``token`` or ``stripe_signature`` are masked before rendering.
"""
import logging
import sys
from typing import Any, Callable, Dict, MutableMapping

import structlog
from pythonjsonlogger import jsonlogger

from sitebuilder.config import Settings, get_settings

REDACTED = "[redacted]"

SENSITIVE_KEYS = frozenset(
    {
        "authorization",
        "password",
        "password_hash",
        "token",
        "client_secret",
        "stripe_signature",
        "admin_key",
        "api_key",
        "secret",
    }
)

QUIET_LOGGERS: Dict[str, int] = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "stripe": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


def redact_sensitive(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask credential values anywhere at the top level of an event."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def _service_context(settings: Settings) -> Callable[..., MutableMapping[str, Any]]:
    def add_service(
        logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", settings.app_name)
        event_dict.setdefault("env", settings.app_env)
        return event_dict

    return add_service


def _configure_structlog(settings: Settings) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            _service_context(settings),
            redact_sensitive,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _configure_root_handler(settings: Settings) -> None:
    root = logging.getLogger()
    root.setLevel(settings.log_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "@timestamp", "levelname": "level", "name": "logger"},
        )
    )
    root.addHandler(handler)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger from settings."""
    settings = settings or get_settings()

    _configure_structlog(settings)
    _configure_root_handler(settings)

    structlog.get_logger(__name__).info(
        "logging_configured",
        log_level=settings.log_level,
        app_env=settings.app_env,
    )
