# wscrape/cli/commands.py
from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path
from typing import Sequence

from wscrape.app.config import load_config, merge_config
from wscrape.app.observers import CaptureStats, CaptureStatsObserver, FanoutObserver
from wscrape.app.scraper import WScrape
from wscrape.interfaces.capture_observer import CaptureObserver
from wscrape.model.login_entry import LoginEntry
from wscrape.protocol.parser import parse_w
from wscrape.runtime.state import LoopStatus


# ---------------- Capture observer ----------------

class PrintCaptureObserver(CaptureObserver):
    """Print each captured batch to stdout."""
    def on_capture(self, entries: Sequence[LoginEntry]) -> None:
        print(f"CAPTURE entries={len(entries)}")
        for e in entries:
            print(f"  {format_entry(e)}")


def format_entry(e: LoginEntry) -> str:
    return (
        f"{e.record_time}  {e.user:<8} {e.tty:<8} {e.from_:<16} "
        f"{e.login_at:<8} {e.idle:<6} {e.jcpu:<6} {e.pcpu:<6} {e.what}"
    )

# ---------------- Logging ----------------

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_CONSOLE_HANDLER = "wscrape-console"


def configure_logging(*, verbose: bool = False) -> None:
    """Stderr handler on the root logger (idempotent)."""
    root = logging.getLogger()
    level = logging.DEBUG if verbose else logging.INFO

    for h in root.handlers:
        if h.get_name() == _CONSOLE_HANDLER:
            h.setLevel(level)
            break
    else:
        sh = logging.StreamHandler(sys.stderr)
        sh.set_name(_CONSOLE_HANDLER)
        sh.setLevel(level)
        sh.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(sh)

    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)


def configure_file_logging(app_log_path: Path) -> None:
    """
    Add a file handler to the root logger (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(fh)

    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)

# ---------------- Status printing ----------------

def print_status(st: LoopStatus, stats: CaptureStats) -> None:
    print(f"Loop:      state={st.state.value} cycles={st.cycles} failed_cycles={st.failed_cycles}")
    print(f"Entries:   captured={st.entries_captured} not_stored={st.entries_failed}")
    print(f"Last:      {st.last_capture_at or '-'}")
    if st.last_error:
        print(f"Last err:  {st.last_error}")
    if stats.sessions_per_user:
        users = ", ".join(f"{u}={n}" for u, n in sorted(stats.sessions_per_user.items()))
        print(f"Sessions:  {users}")

# ---------------- Commands ----------------

def cmd_run(args) -> int:
    base = load_config(args.config) if args.config else None
    cfg = merge_config(
        base,
        store_url=args.store_url,
        ssh_host=args.ssh_host,
        capture_interval_ms=args.capture_interval_ms,
        store_login=args.store_login,
        ssh_login=args.ssh_login,
    )

    if args.log_file:
        configure_file_logging(Path(args.log_file))

    stats = CaptureStatsObserver()
    observers: list[CaptureObserver] = [stats]
    if args.print_entries:
        observers.append(PrintCaptureObserver())

    scraper = WScrape.from_config(cfg, FanoutObserver(observers))
    print(f"Capturing: {cfg.ssh_host} every {cfg.capture_interval_ms} ms")
    try:
        scraper.start()
        t0 = time.time()
        while args.secs is None or time.time() - t0 < args.secs:
            time.sleep(0.2)
    except KeyboardInterrupt:
        print("Interrupted.")
    finally:
        scraper.dispose()

    print_status(scraper.status(), stats.snapshot())
    return 0


def cmd_parse(args) -> int:
    if args.file == "-":
        raw = sys.stdin.read()
    else:
        raw = Path(args.file).read_text(encoding="utf-8", errors="replace")

    for e in parse_w(raw):
        if args.json:
            print(json.dumps(e.as_dict(), ensure_ascii=False))
        else:
            print(format_entry(e))
    return 0
