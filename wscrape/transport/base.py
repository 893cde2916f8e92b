from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CommandResult:
    output: str
    exit_status: int


class CommandTransport(ABC):
    """
    Abstract remote command transport (SSH today).

    Contract:
      - open()/close() manage the long-lived session; close() is idempotent.
      - exec(command) runs one command on its own channel, reads its output
        to completion and releases the channel before returning.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def exec(self, command: str) -> CommandResult: ...

    def __enter__(self) -> "CommandTransport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
