# wscrape/runtime/remote_command.py
from __future__ import annotations

import logging
from typing import Optional

from wscrape.core.errors import RemoteConnectionError
from wscrape.transport.base import CommandTransport
from wscrape.transport.errors import TransportError

W_COMMAND = "w"


class RemoteCommandExecutor:
    """
    Runs the status command over an already-open transport.

    Each execute() uses a fresh channel (see CommandTransport.exec); transport
    failures come out as RemoteConnectionError.
    """

    def __init__(
        self,
        transport: CommandTransport,
        *,
        command: str = W_COMMAND,
        logger: Optional[logging.Logger] = None,
    ):
        self.transport = transport
        self.command = command
        self._log = logger or logging.getLogger(__name__)

    def execute(self) -> str:
        try:
            result = self.transport.exec(self.command)
        except TransportError as e:
            raise RemoteConnectionError(
                "Could not run the remote status command.",
                hint=str(e),
                details={"command": self.command, "driver": type(self.transport).__name__},
            ) from None

        if result.exit_status != 0:
            self._log.warning(
                "REMOTE_COMMAND_EXIT_STATUS command=%s status=%d",
                self.command,
                result.exit_status,
            )
        return result.output

    def close(self) -> None:
        self.transport.close()
