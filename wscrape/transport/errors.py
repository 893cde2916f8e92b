# wscrape/transport/errors.py
from __future__ import annotations

from typing import Optional


class TransportError(Exception):
    """Base class for remote command transport failures."""


class TransportOpenError(TransportError):
    """Session to `endpoint` (user@host:port) could not be established."""

    def __init__(self, endpoint: str, reason: str):
        super().__init__(f"{endpoint}: {reason}")
        self.endpoint = endpoint
        self.reason = reason


class TransportAuthError(TransportOpenError):
    """The remote host rejected the login."""


class TransportIOError(TransportError):
    """Running a command or reading its output failed."""

    def __init__(self, message: str, *, command: Optional[str] = None):
        super().__init__(message)
        self.command = command
