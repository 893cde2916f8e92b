# wscrape/protocol/parser.py
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import List, Optional

from wscrape.model.login_entry import LoginEntry

_log = logging.getLogger(__name__)

# Greedy prefix: the last HH:MM:SS on the summary line wins.
_TIME_RE = re.compile(r".*(\d{2}:\d{2}:\d{2})")

# USER TTY FROM LOGIN@ IDLE JCPU PCPU WHAT, WHAT takes the rest of the line.
_ROW_RE = re.compile(
    r"(\S+)\s+(\S+)\s+(\S+)\s+(\S+)\s+(\S+)\s+(\S+)\s+(\S+)\s+(.+)"
)

# summary line + column header line
HEADER_LINES = 2


def parse_time_of_day(summary_line: str) -> Optional[str]:
    """Return the HH:MM:SS token from the `w` summary line, or None."""
    m = _TIME_RE.search(summary_line)
    return m.group(1) if m else None


def parse_w(raw: str, *, now: Optional[datetime] = None) -> List[LoginEntry]:
    """
    Parse the output of `w` into LoginEntry records, in input order.

    The date part of record_time comes from `now` (local wall clock when not
    given), the time part from the summary line. Rows that do not have the
    eight-column shape are dropped.
    """
    # Only "\n" ends a row; WHAT may contain other line-break characters.
    lines = [line.rstrip("\r") for line in raw.split("\n")]

    time_of_day = parse_time_of_day(lines[0])
    date = (now or datetime.now()).date().isoformat()
    record_time = f"{date} {time_of_day}" if time_of_day else date

    entries: List[LoginEntry] = []
    dropped = 0
    for line in lines[HEADER_LINES:]:
        m = _ROW_RE.search(line)
        if m is None:
            dropped += 1
            continue
        user, tty, from_, login_at, idle, jcpu, pcpu, what = m.groups()
        entries.append(
            LoginEntry(
                record_time=record_time,
                user=user,
                tty=tty,
                from_=from_,
                login_at=login_at,
                idle=idle,
                jcpu=jcpu,
                pcpu=pcpu,
                what=what,
            )
        )

    _log.debug(
        "Parsed w output entries=%d dropped=%d time=%s",
        len(entries),
        dropped,
        time_of_day,
    )
    return entries
