# wscrape/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class LoopStatus:
    """
    A snapshot of the capture loop, safe to share across threads.

    cycles counts cycles that produced a batch; failed_cycles counts cycles
    abandoned because the remote command could not run.
    """
    state: LoopState
    cycles: int = 0
    failed_cycles: int = 0
    entries_captured: int = 0
    entries_failed: int = 0
    last_capture_at: Optional[str] = None
    last_error: Optional[str] = None
