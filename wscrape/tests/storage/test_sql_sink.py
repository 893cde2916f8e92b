from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import ArgumentError, IntegrityError, OperationalError

import wscrape.storage.sql_sink as sink_mod
from wscrape.core.errors import (
    DuplicateEntryError,
    PersistenceError,
    StoreUnavailableError,
)
from wscrape.model.credentials import Login
from wscrape.model.login_entry import COLUMN_KEYS
from wscrape.protocol.parser import parse_w
from wscrape.storage.schema import INSERT_LOGIN_ENTRY, login_entry_table, metadata

NOW = datetime(2026, 10, 16, 12, 0, 0)

W_OUTPUT = (
    " 10:15:32 up 2 days\n"
    "USER     TTY      FROM             LOGIN@   IDLE   JCPU   PCPU WHAT\n"
    "alice    pts/0    10.0.0.5         09:00    0.00s  0.10s  0.01s -bash\n"
    "bob      pts/1    10.0.0.6         08:12    1:02m  0.30s  0.30s vim notes.txt\n"
)


# ---------------- fakes ----------------

class FakeConnection:
    def __init__(self):
        self.executed = []
        self.commits = 0
        self.rollbacks = 0
        self.invalidated = 0
        self.closed = False
        self.raise_on_execute = None

    def execute(self, stmt, params):
        if self.raise_on_execute is not None:
            raise self.raise_on_execute
        self.executed.append((stmt, params))

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def invalidate(self):
        self.invalidated += 1

    def close(self):
        self.closed = True


class _Dialect:
    name = "fake"


class FakeEngine:
    def __init__(self, url):
        self.url = url
        self.dialect = _Dialect()
        self.conn = FakeConnection()
        self.disposed = 0

    def connect(self):
        return self.conn

    def dispose(self):
        self.disposed += 1


@pytest.fixture
def fake_engine(monkeypatch):
    created = {}

    def fake_create_engine(url, **kw):
        created["engine"] = FakeEngine(url)
        return created["engine"]

    monkeypatch.setattr(sink_mod, "create_engine", fake_create_engine)
    return created


def _open_sink(login=None) -> sink_mod.SqlEntrySink:
    s = sink_mod.SqlEntrySink("mysql+pymysql://db.example/metrics", login)
    s.open()
    return s


# ---------------- unit ----------------

def test_open_applies_credentials_to_url(fake_engine):
    _open_sink(Login(user="dbuser", password="dbpass"))

    url = fake_engine["engine"].url
    assert url.username == "dbuser"
    assert url.password == "dbpass"
    assert url.host == "db.example"
    assert url.database == "metrics"


def test_save_binds_nine_values_in_column_order(fake_engine):
    sink = _open_sink()
    entry = parse_w(W_OUTPUT, now=NOW)[0]

    sink.save(entry)

    conn = fake_engine["engine"].conn
    assert len(conn.executed) == 1
    stmt, params = conn.executed[0]
    assert stmt is INSERT_LOGIN_ENTRY
    assert list(params.keys()) == list(COLUMN_KEYS)
    assert list(params.values()) == [
        "2026-10-16 10:15:32",
        "alice",
        "pts/0",
        "10.0.0.5",
        "09:00",
        "0.00s",
        "0.10s",
        "0.01s",
        "-bash",
    ]
    assert conn.commits == 1


def test_integrity_error_becomes_duplicate_and_rolls_back(fake_engine):
    sink = _open_sink()
    conn = fake_engine["engine"].conn
    conn.raise_on_execute = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    with pytest.raises(DuplicateEntryError) as ei:
        sink.save(parse_w(W_OUTPUT, now=NOW)[0])

    assert conn.rollbacks == 1
    assert ei.value.details["key"] == ("alice", "2026-10-16 10:15:32", "pts/0")


def test_invalidated_connection_becomes_store_unavailable(fake_engine):
    sink = _open_sink()
    conn = fake_engine["engine"].conn
    conn.raise_on_execute = OperationalError(
        "INSERT", {}, Exception("server has gone away"), connection_invalidated=True
    )

    with pytest.raises(StoreUnavailableError):
        sink.save(parse_w(W_OUTPUT, now=NOW)[0])


def test_other_driver_error_is_plain_persistence_error(fake_engine):
    sink = _open_sink()
    conn = fake_engine["engine"].conn
    conn.raise_on_execute = OperationalError("INSERT", {}, Exception("data too long"))

    with pytest.raises(PersistenceError) as ei:
        sink.save(parse_w(W_OUTPUT, now=NOW)[0])

    assert type(ei.value) is PersistenceError


def test_save_when_not_open_raises():
    sink = sink_mod.SqlEntrySink("sqlite://")
    with pytest.raises(StoreUnavailableError):
        sink.save(parse_w(W_OUTPUT, now=NOW)[0])


def test_open_failure_raises_store_unavailable(monkeypatch):
    def boom(url, **kw):
        raise ArgumentError("Could not parse SQLAlchemy URL")

    monkeypatch.setattr(sink_mod, "create_engine", boom)

    with pytest.raises(StoreUnavailableError):
        sink_mod.SqlEntrySink("mysql://db/x").open()


def test_missing_driver_raises_store_unavailable(monkeypatch):
    def no_driver(url, **kw):
        raise ModuleNotFoundError("No module named 'MySQLdb'")

    monkeypatch.setattr(sink_mod, "create_engine", no_driver)
    sink = sink_mod.SqlEntrySink("mysql://db/x")

    with pytest.raises(StoreUnavailableError) as ei:
        sink.open()

    assert "MySQLdb" in ei.value.hint
    assert not sink.is_open


def test_close_aborts_once(fake_engine):
    sink = _open_sink()
    engine = fake_engine["engine"]

    sink.close()
    sink.close()

    assert engine.conn.invalidated == 1
    assert engine.conn.closed is True
    assert engine.disposed == 1
    assert sink.is_open is False


# ---------------- sqlite integration ----------------

@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    url = f"sqlite:///{tmp_path / 'logins.db'}"
    engine = create_engine(url)
    metadata.create_all(engine)
    engine.dispose()
    return url


def _count(url: str) -> int:
    engine = create_engine(url)
    try:
        with engine.connect() as conn:
            return conn.execute(text(f'SELECT count(*) FROM "{login_entry_table.name}"')).scalar_one()
    finally:
        engine.dispose()


def test_sqlite_roundtrip_and_duplicate_key(sqlite_url):
    entries = parse_w(W_OUTPUT, now=NOW)
    sink = sink_mod.SqlEntrySink(sqlite_url)
    sink.open()
    try:
        sink.save(entries[0])
        with pytest.raises(DuplicateEntryError):
            sink.save(entries[0])
        # connection still usable after the failed insert
        sink.save(entries[1])
    finally:
        sink.close()

    assert _count(sqlite_url) == 2


def test_sqlite_stores_column_values(sqlite_url):
    sink = sink_mod.SqlEntrySink(sqlite_url)
    sink.open()
    try:
        sink.save(parse_w(W_OUTPUT, now=NOW)[1])
    finally:
        sink.close()

    engine = create_engine(sqlite_url)
    try:
        with engine.connect() as conn:
            row = conn.execute(
                text('SELECT "user", tty, "from", "login@", what FROM "LoginEntry"')
            ).one()
    finally:
        engine.dispose()

    assert tuple(row) == ("bob", "pts/1", "10.0.0.6", "08:12", "vim notes.txt")
