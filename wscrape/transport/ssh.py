# wscrape/transport/ssh.py
from __future__ import annotations

from typing import Optional

import paramiko

from .base import CommandResult, CommandTransport
from .errors import TransportAuthError, TransportIOError, TransportOpenError

SSH_PORT = 22


class SSHTransport(CommandTransport):
    """
    SSH transport implemented via paramiko.

    Password auth only (no agent, no key lookup). Unknown host keys are
    accepted, the equivalent of StrictHostKeyChecking=no.
    """

    def __init__(
        self,
        host: str,
        user: str,
        password: str,
        *,
        port: int = SSH_PORT,
        connect_timeout: float = 10.0,
        exec_timeout: float = 30.0,
        keepalive_s: int = 30,
    ):
        self.host = host
        self.user = user
        self.port = port
        self.connect_timeout = connect_timeout
        self.exec_timeout = exec_timeout
        self.keepalive_s = keepalive_s
        self._password = password
        self.client: Optional[paramiko.SSHClient] = None

    @property
    def endpoint(self) -> str:
        return f"{self.user}@{self.host}:{self.port}"

    def open(self) -> None:
        if self.client is not None:
            return

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                self.host,
                port=self.port,
                username=self.user,
                password=self._password,
                timeout=self.connect_timeout,
                look_for_keys=False,
                allow_agent=False,
            )
        except paramiko.AuthenticationException as e:
            client.close()
            raise TransportAuthError(self.endpoint, str(e) or "authentication failed") from None
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise TransportOpenError(self.endpoint, str(e)) from None

        transport = client.get_transport()
        if transport is not None and self.keepalive_s > 0:
            transport.set_keepalive(self.keepalive_s)
        self.client = client

    def close(self) -> None:
        if self.client is not None:
            try:
                self.client.close()
            finally:
                self.client = None

    def is_open(self) -> bool:
        if self.client is None:
            return False
        transport = self.client.get_transport()
        return transport is not None and transport.is_active()

    def exec(self, command: str) -> CommandResult:
        if not self.is_open():
            raise TransportIOError("exec while transport not open", command=command)

        transport = self.client.get_transport()  # type: ignore[union-attr]
        try:
            with transport.open_session(timeout=self.exec_timeout) as chan:
                chan.settimeout(self.exec_timeout)
                chan.exec_command(command)
                with chan.makefile("rb") as stdout:
                    data = stdout.read()
                status = chan.recv_exit_status()
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise TransportIOError(f"exec '{command}' failed: {e}", command=command) from None

        return CommandResult(
            output=data.decode("utf-8", errors="replace"),
            exit_status=int(status),
        )
