from __future__ import annotations

import json
from pathlib import Path

import pytest

import wscrape.cli.commands as commands_mod
from wscrape.cli.main import main
from wscrape.runtime.state import LoopState, LoopStatus

W_OUTPUT = (
    " 10:15:32 up 2 days\n"
    "USER     TTY      FROM             LOGIN@   IDLE   JCPU   PCPU WHAT\n"
    "alice    pts/0    10.0.0.5         09:00    0.00s  0.10s  0.01s -bash\n"
    "bob      pts/1    10.0.0.6         08:12    1:02m  0.30s  0.30s vim notes.txt\n"
)


class FakeWScrape:
    last: "FakeWScrape | None" = None

    def __init__(self, cfg, observer):
        self.cfg = cfg
        self.observer = observer
        self.started = 0
        self.disposed = 0

    @classmethod
    def from_config(cls, cfg, observer=None):
        cls.last = cls(cfg, observer)
        return cls.last

    def start(self):
        self.started += 1
        self.observer.on_capture([])

    def dispose(self):
        self.disposed += 1

    def status(self):
        return LoopStatus(state=LoopState.DISPOSED, cycles=1)


def test_parse_prints_entries(tmp_path: Path, capsys) -> None:
    f = tmp_path / "w.txt"
    f.write_text(W_OUTPUT, encoding="utf-8")

    rc = main(["parse", str(f)])

    out = capsys.readouterr().out.splitlines()
    assert rc == 0
    assert len(out) == 2
    assert "alice" in out[0]
    assert out[1].endswith("vim notes.txt")


def test_parse_json_lines(tmp_path: Path, capsys) -> None:
    f = tmp_path / "w.txt"
    f.write_text(W_OUTPUT, encoding="utf-8")

    rc = main(["parse", "--json", str(f)])

    lines = capsys.readouterr().out.splitlines()
    assert rc == 0
    rows = [json.loads(line) for line in lines]
    assert rows[0]["login@"] == "09:00"
    assert rows[1]["from"] == "10.0.0.6"


def test_parse_missing_file_returns_1(tmp_path: Path, capsys) -> None:
    rc = main(["parse", str(tmp_path / "absent.txt")])
    assert rc == 1
    assert "ERROR" in capsys.readouterr().out


def test_run_without_required_settings_returns_1(capsys) -> None:
    rc = main(["run", "--host", "shell.example"])

    out = capsys.readouterr().out
    assert rc == 1
    assert "ERROR: Missing config keys" in out


def test_run_starts_and_disposes(monkeypatch, capsys) -> None:
    monkeypatch.setattr(commands_mod, "WScrape", FakeWScrape)

    rc = main([
        "run",
        "--store-url", "mysql://db/metrics",
        "--host", "shell.example",
        "--interval-ms", "1000",
        "--store-login", "sql.json",
        "--ssh-login", "ssh.json",
        "--secs", "0",
        "--print",
    ])

    out = capsys.readouterr().out
    ws = FakeWScrape.last
    assert rc == 0
    assert ws is not None
    assert ws.started == 1
    assert ws.disposed == 1
    assert ws.cfg.ssh_host == "shell.example"
    assert "CAPTURE entries=0" in out
    assert "state=disposed" in out


def test_unknown_subcommand_exits_2() -> None:
    with pytest.raises(SystemExit) as ei:
        main(["bogus"])
    assert ei.value.code == 2
