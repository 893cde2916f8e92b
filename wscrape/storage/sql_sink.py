# wscrape/storage/sql_sink.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError

from wscrape.core.errors import (
    DuplicateEntryError,
    PersistenceError,
    StoreUnavailableError,
)
from wscrape.interfaces.entry_sink import EntrySink
from wscrape.model.credentials import Login
from wscrape.model.login_entry import LoginEntry
from wscrape.storage.schema import INSERT_LOGIN_ENTRY


class SqlEntrySink(EntrySink):
    """
    Writes LoginEntry rows through one long-lived SQLAlchemy connection.

    - one parameterized INSERT per entry, committed on its own
    - a failed insert is rolled back so the next entry can still be written
    - close() aborts the connection and disposes the engine
    """

    def __init__(
        self,
        url: str,
        login: Optional[Login] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._url = url
        self._login = login
        self._log = logger or logging.getLogger(__name__)

        self._engine: Optional[Engine] = None
        self._conn: Optional[Connection] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None and not self._conn.closed

    def open(self) -> None:
        if self._conn is not None:
            return

        try:
            url = make_url(self._url)
            if self._login is not None:
                url = url.set(username=self._login.user, password=self._login.password)
            self._engine = create_engine(url)
            self._conn = self._engine.connect()
        except (SQLAlchemyError, ImportError) as e:
            # ImportError: the URL names a DBAPI driver that is not installed
            self._dispose_engine()
            raise StoreUnavailableError(
                "Could not connect to the store.",
                hint=str(e),
                details={"url": self._url},
            ) from None

        self._log.info("STORE_CONNECTED dialect=%s", self._engine.dialect.name)

    def save(self, entry: LoginEntry) -> None:
        conn = self._conn
        if conn is None or conn.closed:
            raise StoreUnavailableError(
                "save while store connection not open",
                details={"key": entry.key},
            )

        try:
            conn.execute(INSERT_LOGIN_ENTRY, entry.as_row())
            conn.commit()
        except IntegrityError as e:
            self._rollback_safe(conn)
            raise DuplicateEntryError(
                "Login entry already stored.",
                hint=str(e.orig),
                details={"key": entry.key},
            ) from None
        except DBAPIError as e:
            self._rollback_safe(conn)
            err_cls = StoreUnavailableError if e.connection_invalidated else PersistenceError
            raise err_cls(
                "Failed to store login entry.",
                hint=str(e.orig),
                details={"key": entry.key},
            ) from None
        except SQLAlchemyError as e:
            self._rollback_safe(conn)
            raise PersistenceError(
                "Failed to store login entry.",
                hint=str(e),
                details={"key": entry.key},
            ) from None

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            try:
                conn.invalidate()
                conn.close()
            except SQLAlchemyError:
                self._log.exception("STORE_ABORT_FAILED")
        self._dispose_engine()

    def _dispose_engine(self) -> None:
        engine, self._engine = self._engine, None
        if engine is not None:
            try:
                engine.dispose()
            except SQLAlchemyError:
                self._log.exception("STORE_ENGINE_DISPOSE_FAILED")

    def _rollback_safe(self, conn: Connection) -> None:
        try:
            conn.rollback()
        except SQLAlchemyError:
            self._log.warning("STORE_ROLLBACK_FAILED", exc_info=True)
