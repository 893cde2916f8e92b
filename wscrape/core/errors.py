# wscrape/core/errors.py
from __future__ import annotations


class WScrapeError(Exception):
    """
    Base class for all expected operational errors in wscrape.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Construction-time errors (fatal)
# ---------------------------------------------------------------------------

class ConfigurationError(WScrapeError):
    """
    The scraper could not be constructed.

    Examples:
      - credential file missing, not JSON, or without user/pass strings
      - config file with unknown or missing keys
      - store or SSH host unreachable at initial connect
    """
    code = "configuration_error"


# ---------------------------------------------------------------------------
# Per-cycle errors (recoverable)
# ---------------------------------------------------------------------------

class RemoteConnectionError(WScrapeError):
    """
    The remote status command could not be run during a capture cycle.

    Examples:
      - SSH session dropped or host unreachable
      - exec channel could not be opened
      - read failed before EOF
    """
    code = "remote_connection_error"


# ---------------------------------------------------------------------------
# Per-record errors (recoverable)
# ---------------------------------------------------------------------------

class PersistenceError(WScrapeError):
    """
    A single login entry could not be written to the store.
    """
    code = "persistence_error"


class DuplicateEntryError(PersistenceError):
    """
    The (user, record_time, tty) key already exists.

    Expected when two captures land in the same wall-clock second.
    """
    code = "duplicate_entry"


class StoreUnavailableError(PersistenceError):
    """
    The store connection is no longer usable (dropped, invalidated, closed).
    """
    code = "store_unavailable"
