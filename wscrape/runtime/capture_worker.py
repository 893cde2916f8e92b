# wscrape/runtime/capture_worker.py
from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wscrape.runtime.capture_loop import CaptureLoop


class CaptureWorker(threading.Thread):
    """Thread that runs capture cycles back to back, waiting interval_s in between."""

    def __init__(self, loop: "CaptureLoop", interval_s: float):
        super().__init__(daemon=True, name="wscrape-capture")
        self.loop = loop
        self.interval_s = float(interval_s)
        self._stop_event = threading.Event()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    self.loop._run_cycle()
                except Exception:
                    self.loop._log.exception("CAPTURE_WORKER_EXCEPTION")
                self._stop_event.wait(self.interval_s)
        finally:
            self.loop._on_worker_exit()

    def stop(self) -> None:
        self._stop_event.set()
