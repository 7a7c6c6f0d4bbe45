"""Settings for the ledger engine."""

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOCK_TIMEOUT = 10.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def default_database_path() -> str:
    """Return LEDGERBOOK_DB_PATH, or ~/.ledgerbook/ledgerbook.db when unset."""
    env_path = os.environ.get("LEDGERBOOK_DB_PATH")
    if env_path:
        return env_path
    return str(Path.home() / ".ledgerbook" / "ledgerbook.db")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got '{raw}'")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got '{raw}'")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got '{raw}'")
    return value


def _env_log_level(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().upper()
    if value not in logging.getLevelNamesMapping():
        raise ValueError(f"{name} must be a logging level name, got '{raw}'")
    return value


@dataclass(frozen=True)
class LedgerSettings:
    """Runtime settings for the ledger engine.

    Attributes:
        database_path: SQLite database file used by the CLI.
        lock_timeout: Seconds a writer waits for an account lock before
            failing with ConcurrentModification.
        strict_validation: Validate the whole account after every mutation
            instead of only the recomputed suffix (debug/test mode).
        preflight_reads: Validate accounts before building day summaries.
        log_level: Level name for the ``ledgerbook`` logger namespace.
    """

    database_path: Optional[str] = None
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT
    strict_validation: bool = False
    preflight_reads: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        """Build settings from environment variables.

        Returns:
            LedgerSettings: Settings sourced from environment variables.
        """
        return cls(
            database_path=default_database_path(),
            lock_timeout=_env_float("LEDGERBOOK_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT),
            strict_validation=_env_bool("LEDGERBOOK_STRICT_VALIDATION", False),
            preflight_reads=_env_bool("LEDGERBOOK_PREFLIGHT_READS", False),
            log_level=_env_log_level("LEDGERBOOK_LOG_LEVEL", "WARNING"),
        )
