# wscrape/app/scraper.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from wscrape.app.config import WScrapeConfig
from wscrape.app.observers import CaptureCallback, as_observer
from wscrape.core.errors import ConfigurationError, PersistenceError
from wscrape.interfaces.capture_observer import CaptureObserver
from wscrape.model.credentials import Login
from wscrape.runtime.capture_loop import CaptureLoop
from wscrape.runtime.remote_command import RemoteCommandExecutor
from wscrape.runtime.state import LoopState, LoopStatus
from wscrape.storage.sql_sink import SqlEntrySink
from wscrape.transport.errors import TransportAuthError, TransportError
from wscrape.transport.ssh import SSH_PORT, SSHTransport


class WScrape:
    """
    Makes repeated calls over an SSH connection to run `w`, parses the result
    and stores each row in the LoginEntry table (see wscrape.storage.schema).

    Construction connects to both the store and the SSH host; either failing
    raises ConfigurationError and nothing stays open. Capturing begins on
    start(), pauses for good on stop(); dispose() releases both connections.
    The worker is a daemon thread, so a forgotten dispose() does not keep the
    process alive, but connections are only closed by dispose().
    """

    def __init__(
        self,
        store_url: str,
        ssh_host: str,
        capture_interval_ms: int,
        store_login: Union[str, Path],
        ssh_login: Union[str, Path],
        observer: Union[CaptureObserver, CaptureCallback, None] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._log = logger or logging.getLogger(__name__)

        if capture_interval_ms <= 0:
            raise ConfigurationError(
                "capture_interval_ms must be a positive integer.",
                details={"capture_interval_ms": capture_interval_ms},
            )

        try:
            capture_observer = as_observer(observer)
        except TypeError as e:
            raise ConfigurationError(
                "Invalid capture observer.",
                hint=str(e),
                details={"observer": type(observer).__name__},
            ) from None

        store_creds = Login.load(store_login)
        ssh_creds = Login.load(ssh_login)

        sink = SqlEntrySink(store_url, store_creds, logger=self._log)
        try:
            sink.open()
        except PersistenceError as e:
            self._log.warning("STORE_CONNECT_FAILED msg=%s", e.hint)
            raise ConfigurationError(
                "Could not connect to the store.",
                hint=e.hint,
                details={"url": store_url},
            ) from None

        transport = SSHTransport(ssh_host, ssh_creds.user, ssh_creds.password, port=SSH_PORT)
        try:
            transport.open()
        except TransportAuthError as e:
            self._log.warning("SSH_AUTH_FAILED endpoint=%s msg=%s", e.endpoint, e.reason)
            sink.close()
            raise ConfigurationError(
                "SSH login rejected.",
                hint=f"Check the credentials in {ssh_login}.",
                details={"host": ssh_host, "port": SSH_PORT, "user": ssh_creds.user},
            ) from None
        except TransportError as e:
            self._log.warning("SSH_CONNECT_FAILED host=%s msg=%s", ssh_host, e)
            sink.close()
            raise ConfigurationError(
                "Could not open the SSH session.",
                hint=str(e),
                details={"host": ssh_host, "port": SSH_PORT},
            ) from None

        self._log.info("SSH_CONNECTED host=%s user=%s", ssh_host, ssh_creds.user)

        self._loop = CaptureLoop(
            executor=RemoteCommandExecutor(transport, logger=self._log),
            sink=sink,
            interval_s=capture_interval_ms / 1000.0,
            observer=capture_observer,
            logger=self._log,
        )

    @classmethod
    def from_config(
        cls,
        cfg: WScrapeConfig,
        observer: Union[CaptureObserver, CaptureCallback, None] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> "WScrape":
        return cls(
            cfg.store_url,
            cfg.ssh_host,
            cfg.capture_interval_ms,
            cfg.store_login,
            cfg.ssh_login,
            observer,
            logger=logger,
        )

    @property
    def state(self) -> LoopState:
        return self._loop.state

    def start(self) -> None:
        """Start scraping."""
        self._loop.start()

    def stop(self) -> None:
        """Stop scraping."""
        self._loop.stop()

    def dispose(self) -> None:
        """Disconnects from the store and SSH."""
        self._loop.dispose()

    def status(self) -> LoopStatus:
        return self._loop.status()

    def __enter__(self) -> "WScrape":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()
