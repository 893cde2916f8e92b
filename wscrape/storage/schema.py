# wscrape/storage/schema.py
from __future__ import annotations

from sqlalchemy import (
    TIMESTAMP,
    Column,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    bindparam,
    insert,
)

metadata = MetaData()

# Mirrors the existing server table; wscrape never issues DDL against it.
# Column keys `from_` / `login_at` match LoginEntry field names.
login_entry_table = Table(
    "LoginEntry",
    metadata,
    Column("record_time", TIMESTAMP, nullable=False),
    Column("user", String(16), nullable=False),
    Column("tty", String(16), nullable=False),
    Column("from", String(32), nullable=False, key="from_"),
    Column("login@", String(16), nullable=False, key="login_at"),
    Column("idle", String(16), nullable=False),
    Column("jcpu", String(16), nullable=False),
    Column("pcpu", String(16), nullable=False),
    Column("what", String(256), nullable=False),
    PrimaryKeyConstraint("user", "record_time", "tty"),
)

# Every value is bound as a string parameter, record_time included; the
# server converts it to a timestamp.
INSERT_LOGIN_ENTRY = insert(login_entry_table).values(
    {c.key: bindparam(c.key, type_=String()) for c in login_entry_table.columns}
)
