# wscrape/model/credentials.py
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from wscrape.core.errors import ConfigurationError

_REQUIRED_KEYS = ("user", "pass")


@dataclass(frozen=True)
class Login:
    """
    Local credentials, loaded from a JSON file such as:

        {"user": "myusername", "pass": "mypassword"}
    """

    user: str
    password: str

    def __repr__(self) -> str:
        return f"Login(user={self.user!r}, password='***')"

    @classmethod
    def from_dict(cls, data: object, *, source: str = "<dict>") -> "Login":
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Credentials in {source} must be a JSON object.",
                hint='Expected {"user": "...", "pass": "..."}',
                details={"path": source},
            )

        missing = [k for k in _REQUIRED_KEYS if k not in data]
        unknown = sorted(k for k in data if k not in _REQUIRED_KEYS)
        if missing or unknown:
            raise ConfigurationError(
                f"Credentials in {source} must have exactly the keys 'user' and 'pass'.",
                hint=f"missing={missing} unknown={unknown}",
                details={"path": source, "missing": missing, "unknown": unknown},
            )

        for k in _REQUIRED_KEYS:
            if not isinstance(data[k], str):
                raise ConfigurationError(
                    f"Credential field '{k}' in {source} must be a string.",
                    details={"path": source, "field": k},
                )

        return cls(user=data["user"], password=data["pass"])

    @classmethod
    def load(cls, path: str | Path) -> "Login":
        p = Path(path)
        try:
            text = p.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(
                f"Could not read credentials file {p}.",
                hint=str(e),
                details={"path": str(p)},
            ) from None

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Credentials file {p} is not valid JSON.",
                hint=str(e),
                details={"path": str(p)},
            ) from None

        return cls.from_dict(data, source=str(p))
