# wscrape/model/login_entry.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

# Store column keys in documented insert order.
# `from_` and `login_at` map to the `from` and `login@` columns.
COLUMN_KEYS = (
    "record_time",
    "user",
    "tty",
    "from_",
    "login_at",
    "idle",
    "jcpu",
    "pcpu",
    "what",
)


@dataclass(frozen=True)
class LoginEntry:
    """
    One row of `w` output, stamped with the capture time.

    Attributes:
        record_time: "YYYY-MM-DD HH:MM:SS", or just the date when the `w`
            header carried no time of day.
        user, tty, from_, login_at, idle, jcpu, pcpu: column text, verbatim.
        what: the rest of the line (may contain spaces).
    """

    record_time: str
    user: str
    tty: str
    from_: str
    login_at: str
    idle: str
    jcpu: str
    pcpu: str
    what: str

    @property
    def key(self) -> tuple[str, str, str]:
        """Store primary key: (user, record_time, tty)."""
        return (self.user, self.record_time, self.tty)

    def as_row(self) -> Dict[str, str]:
        """Values keyed by store column key, in insert order."""
        return {k: getattr(self, k) for k in COLUMN_KEYS}

    def as_dict(self) -> Dict[str, str]:
        """Values keyed by the `w` column names (for printing / JSON)."""
        return {
            "record_time": self.record_time,
            "user": self.user,
            "tty": self.tty,
            "from": self.from_,
            "login@": self.login_at,
            "idle": self.idle,
            "jcpu": self.jcpu,
            "pcpu": self.pcpu,
            "what": self.what,
        }
