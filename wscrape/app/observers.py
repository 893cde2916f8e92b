# wscrape/app/observers.py
from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Union

from wscrape.interfaces.capture_observer import CaptureObserver
from wscrape.model.login_entry import LoginEntry

CaptureCallback = Callable[[Sequence[LoginEntry]], None]


class CallbackObserver(CaptureObserver):
    """Adapts a plain function to the CaptureObserver interface."""

    def __init__(self, callback: CaptureCallback):
        self._callback = callback

    def on_capture(self, entries: Sequence[LoginEntry]) -> None:
        self._callback(entries)


def as_observer(obj: Union[CaptureObserver, CaptureCallback, None]) -> Optional[CaptureObserver]:
    if obj is None:
        return None
    if callable(getattr(obj, "on_capture", None)):
        return obj  # type: ignore[return-value]
    if callable(obj):
        return CallbackObserver(obj)
    raise TypeError(f"observer must be a CaptureObserver or a callable, got {type(obj).__name__}")


class FanoutObserver(CaptureObserver):
    """Forwards each batch to several observers; one failing does not starve the rest."""

    def __init__(self, observers: Sequence[CaptureObserver], *, logger: Optional[logging.Logger] = None):
        self._observers = list(observers)
        self._log = logger or logging.getLogger(__name__)

    def on_capture(self, entries: Sequence[LoginEntry]) -> None:
        for o in list(self._observers):
            try:
                o.on_capture(entries)
            except Exception:
                self._log.exception("OBSERVER_ON_CAPTURE_ERROR observer=%s", type(o).__name__)


@dataclass(frozen=True)
class CaptureStats:
    batches: int
    entries: int
    last_batch_size: int
    sessions_per_user: Dict[str, int]


class CaptureStatsObserver(CaptureObserver):
    """
    Keeps running totals over captured batches.

    sessions_per_user reflects the most recent batch only.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._batches = 0
        self._entries = 0
        self._last_batch_size = 0
        self._per_user: Counter[str] = Counter()

    def on_capture(self, entries: Sequence[LoginEntry]) -> None:
        per_user = Counter(e.user for e in entries)
        with self._lock:
            self._batches += 1
            self._entries += len(entries)
            self._last_batch_size = len(entries)
            self._per_user = per_user

    def snapshot(self) -> CaptureStats:
        with self._lock:
            return CaptureStats(
                batches=self._batches,
                entries=self._entries,
                last_batch_size=self._last_batch_size,
                sessions_per_user=dict(self._per_user),
            )
