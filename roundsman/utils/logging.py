"""structlog on top of the standard library, under the ``roundsman`` namespace.

Modules get their logger with ``get_logger(__name__)``. Values bound with
``logger.bind(host=...)`` are appended to the message as ``[host=...]`` so
they survive the plain stdlib formatter.
"""

import logging
import sys

import structlog

from roundsman.config import LoggingSettings, get_settings

NAMESPACE = "roundsman"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Kept at WARNING unless DEBUG_ALL is set; paramiko logs every channel event.
QUIET_LOGGERS = ("paramiko",)

_RESERVED_KEYS = frozenset({"event", "level", "logger", "exc_info", "stack_info"})


def get_logger(name: str | None = None):
    """Return a structlog logger inside the roundsman namespace."""
    if not name:
        return structlog.get_logger(NAMESPACE)
    if name == NAMESPACE or name.startswith(f"{NAMESPACE}."):
        return structlog.get_logger(name)
    return structlog.get_logger(f"{NAMESPACE}.{name}")


def append_context(logger, method_name, event_dict):
    """Fold bound key/value pairs into the event text."""
    context = " ".join(
        f"{key}={value}" for key, value in event_dict.items() if key not in _RESERVED_KEYS
    )
    if context:
        event_dict = {
            key: value for key, value in event_dict.items() if key in _RESERVED_KEYS
        }
        event_dict["event"] = f"{event_dict.get('event', '')} [{context}]"
    return event_dict


def quiet_third_party(debug_all: bool) -> None:
    level = logging.DEBUG if debug_all else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(level)


def setup_logging(settings: LoggingSettings | None = None) -> None:
    """Route roundsman logs to stderr.

    LOG_LEVEL sets the level of the roundsman namespace. DEBUG_ALL opens up
    the root logger and the quiet libraries as well.
    """
    settings = settings or get_settings().logging

    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if settings.debug_all else logging.WARNING,
        format=LOG_FORMAT,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            append_context,
            structlog.stdlib.render_to_log_kwargs,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    quiet_third_party(settings.debug_all)
    logging.getLogger(NAMESPACE).setLevel(settings.log_level)
