# wscrape/cli/main.py
from __future__ import annotations

from typing import Optional

from wscrape.core.errors import WScrapeError

from wscrape.cli.args import parse_args
from wscrape.cli.commands import cmd_parse, cmd_run, configure_logging


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(verbose=args.verbose)
    try:
        if args.cmd == "run":
            return cmd_run(args)
        if args.cmd == "parse":
            return cmd_parse(args)

        return 2
    except WScrapeError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1
    except OSError as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
