"""
Logging configuration.

Call sites attach structured context with ``extra={...}``; the formatter
appends those fields to the message as ``key=value`` pairs.
"""

import logging
import sys

# Attributes present on every LogRecord; anything else came from ``extra``
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "taskName"}

_LOGGER_ROOT = "folio"


class ContextFormatter(logging.Formatter):
    """Formatter that renders ``extra`` fields after the message."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not context:
            return base
        rendered = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
        return f"{base} | {rendered}"


def init_logging(level: str = "INFO") -> None:
    """
    Configure application logging.

    Installs a single stderr handler on the ``folio`` logger hierarchy.
    Safe to call more than once.

    Args:
        level: Log level name (e.g. "INFO", "DEBUG").
    """
    logger = logging.getLogger(_LOGGER_ROOT)
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ContextFormatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``folio`` hierarchy.

    Args:
        name: Module name, usually ``__name__``.

    Returns:
        Configured logger instance.
    """
    if name.startswith(f"{_LOGGER_ROOT}_"):
        name = f"{_LOGGER_ROOT}.{name}"
    return logging.getLogger(name)
