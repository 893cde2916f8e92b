# wscrape/cli/args.py
from __future__ import annotations

import argparse
from typing import Optional


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wscrape")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Capture `w` output periodically into the store.")
    p_run.add_argument("--config", default=None, help="YAML config file (flags override its values).")
    p_run.add_argument("--store-url", default=None, help="SQLAlchemy URL of the store, without credentials.")
    p_run.add_argument("--host", dest="ssh_host", default=None, help="SSH host (port 22).")
    p_run.add_argument("--interval-ms", dest="capture_interval_ms", type=int, default=None)
    p_run.add_argument("--store-login", default=None, help='JSON file {"user": ..., "pass": ...} for the store.')
    p_run.add_argument("--ssh-login", default=None, help='JSON file {"user": ..., "pass": ...} for SSH.')
    p_run.add_argument("--secs", type=float, default=None, help="Stop after this many seconds (default: run until Ctrl-C).")
    p_run.add_argument("--print", dest="print_entries", action="store_true", help="Print every captured batch.")
    p_run.add_argument("--log-file", default=None)

    p_parse = sub.add_parser("parse", help="Parse saved `w` output offline.")
    p_parse.add_argument("file", help="File with `w` output, or '-' for stdin.")
    p_parse.add_argument("--json", action="store_true", help="One JSON object per line.")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
