# wscrape/runtime/capture_loop.py
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import List, Optional

from wscrape.core.errors import DuplicateEntryError, PersistenceError, RemoteConnectionError
from wscrape.interfaces.capture_observer import CaptureObserver
from wscrape.interfaces.entry_sink import EntrySink
from wscrape.model.login_entry import LoginEntry
from wscrape.protocol.parser import parse_w
from wscrape.runtime.capture_worker import CaptureWorker
from wscrape.runtime.remote_command import RemoteCommandExecutor
from wscrape.runtime.state import LoopState, LoopStatus


class CaptureLoop:
    """
    Repeated capture of `w` output: execute -> parse -> save each -> observe -> wait.

    Owns the executor (remote session) and the sink (store connection) until
    dispose(). One background worker thread runs the cycles, so cycles never
    overlap.

    Lifecycle: IDLE -> RUNNING -> STOPPED, DISPOSED from anywhere.
    A loop is single-use: start() after stop() is ignored.

    Handles are never closed under a running cycle: if dispose() cannot join
    the worker (timeout, or called from the observer), the worker closes them
    as it exits. A cycle that sees DISPOSED stores and reports nothing more.
    """

    def __init__(
        self,
        *,
        executor: RemoteCommandExecutor,
        sink: EntrySink,
        interval_s: float,
        observer: Optional[CaptureObserver] = None,
        join_timeout_s: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0 (got {interval_s})")

        self._executor = executor
        self._sink = sink
        self._interval_s = float(interval_s)
        self._observer = observer
        self._join_timeout_s = float(join_timeout_s)
        self._log = logger or logging.getLogger(__name__)

        self._lock = threading.RLock()
        self._state = LoopState.IDLE
        self._worker: Optional[CaptureWorker] = None
        self._worker_exited = False
        self._release_on_worker_exit = False
        self._released = False

        self._cycles = 0
        self._failed_cycles = 0
        self._entries_captured = 0
        self._entries_failed = 0
        self._last_capture_at: Optional[str] = None
        self._last_error: Optional[str] = None

    @property
    def state(self) -> LoopState:
        with self._lock:
            return self._state

    @property
    def interval_s(self) -> float:
        return self._interval_s

    # ---------------- Lifecycle ----------------
    def start(self) -> None:
        with self._lock:
            if self._state is LoopState.DISPOSED:
                raise RuntimeError("CaptureLoop already disposed")
            if self._state is LoopState.RUNNING:
                return
            if self._state is LoopState.STOPPED:
                self._log.warning("CAPTURE_RESTART_IGNORED state=%s", self._state.value)
                return

            self._worker = CaptureWorker(self, self._interval_s)
            self._state = LoopState.RUNNING
            self._worker.start()

        self._log.info("CAPTURE_START interval_s=%.3f", self._interval_s)

    def stop(self) -> None:
        with self._lock:
            if self._state is not LoopState.RUNNING:
                return
            self._state = LoopState.STOPPED
            worker = self._worker

        if worker is not None:
            worker.stop()
        self._log.info("CAPTURE_STOP")

    def dispose(self) -> None:
        with self._lock:
            if self._state is LoopState.DISPOSED:
                return
            self._state = LoopState.DISPOSED
            worker, self._worker = self._worker, None

        on_worker = worker is threading.current_thread()
        if worker is not None:
            worker.stop()
            if not on_worker:
                worker.join(timeout=self._join_timeout_s)

        # A cycle still in flight keeps the handles; the worker releases them on exit.
        with self._lock:
            deferred = worker is not None and not self._worker_exited
            self._release_on_worker_exit = deferred

        if deferred:
            self._log.warning(
                "CAPTURE_RELEASE_DEFERRED reason=%s timeout_s=%.1f",
                "dispose_on_worker" if on_worker else "join_timeout",
                self._join_timeout_s,
            )
        else:
            self._release_resources()

        self._log.info("CAPTURE_DISPOSED")

    def status(self) -> LoopStatus:
        with self._lock:
            return LoopStatus(
                state=self._state,
                cycles=self._cycles,
                failed_cycles=self._failed_cycles,
                entries_captured=self._entries_captured,
                entries_failed=self._entries_failed,
                last_capture_at=self._last_capture_at,
                last_error=self._last_error,
            )

    def __enter__(self) -> "CaptureLoop":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _release_resources(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True

        try:
            self._sink.close()
        except Exception:
            self._log.exception("SINK_CLOSE_ERROR")

        try:
            self._executor.close()
        except Exception:
            self._log.exception("REMOTE_CLOSE_ERROR")

    def _on_worker_exit(self) -> None:
        with self._lock:
            self._worker_exited = True
            release = self._release_on_worker_exit
        if release:
            self._release_resources()
            self._log.info("CAPTURE_RELEASED_BY_WORKER")

    def _disposed(self) -> bool:
        with self._lock:
            return self._state is LoopState.DISPOSED

    # ---------------- Cycle (worker thread) ----------------
    def _run_cycle(self) -> None:
        try:
            raw = self._executor.execute()
        except RemoteConnectionError as e:
            with self._lock:
                self._failed_cycles += 1
                self._last_error = e.message if not e.hint else f"{e.message} ({e.hint})"
            self._log.warning("CAPTURE_REMOTE_FAILED code=%s msg=%s hint=%s", e.code, e.message, e.hint)
            return

        if self._disposed():
            self._log.info("CAPTURE_CYCLE_ABANDONED reason=disposed")
            return

        entries = parse_w(raw)
        failed = self._save_all(entries)
        if self._disposed():
            self._log.info("CAPTURE_CYCLE_ABANDONED reason=disposed")
            return

        with self._lock:
            self._cycles += 1
            self._entries_captured += len(entries)
            self._entries_failed += failed
            self._last_capture_at = datetime.now().isoformat(timespec="seconds")

        self._log.info("CAPTURE_OK entries=%d failed=%d", len(entries), failed)

        observer = self._observer
        if observer is not None:
            try:
                observer.on_capture(list(entries))
            except Exception:
                self._log.exception("CAPTURE_OBSERVER_ERROR")

    def _save_all(self, entries: List[LoginEntry]) -> int:
        failed = 0
        for entry in entries:
            if self._disposed():
                break
            try:
                self._sink.save(entry)
            except DuplicateEntryError as e:
                failed += 1
                self._log.info(
                    "ENTRY_DUPLICATE user=%s tty=%s record_time=%s",
                    entry.user,
                    entry.tty,
                    entry.record_time,
                )
                with self._lock:
                    self._last_error = e.message
            except PersistenceError as e:
                failed += 1
                self._log.warning(
                    "ENTRY_SAVE_FAILED code=%s user=%s tty=%s msg=%s hint=%s",
                    e.code,
                    entry.user,
                    entry.tty,
                    e.message,
                    e.hint,
                )
                with self._lock:
                    self._last_error = e.message
        return failed
