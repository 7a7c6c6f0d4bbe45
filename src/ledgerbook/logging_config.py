"""Logging setup for ledgerbook.

Modules log short event names with structured ``extra`` fields, e.g.
``logger.info("transaction_added", extra={"account_id": 3})``.
"""

__all__ = ["get_logger", "configure_logging", "ExtraFormatter"]

import logging
import sys

_LOGGER_PREFIX = "ledgerbook"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class ExtraFormatter(logging.Formatter):
    """Plain-text formatter that appends ``extra`` fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = {
            key: val for key, val in vars(record).items() if key not in _STDLIB_KEYS
        }
        if extras:
            line += " " + " ".join(f"{key}={val}" for key, val in sorted(extras.items()))
        return line


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ledgerbook namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(level: str | int = "WARNING", stream=None) -> logging.Logger:
    """Attach a single stream handler to the ledgerbook root logger.

    Calling this again replaces the handler installed by the previous call.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    for handler in list(root.handlers):
        if getattr(handler, "_ledgerbook_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ExtraFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    handler._ledgerbook_handler = True
    root.addHandler(handler)
    root.setLevel(level if isinstance(level, int) else level.upper())
    return root
