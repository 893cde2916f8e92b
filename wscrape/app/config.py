# wscrape/app/config.py
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from wscrape.core.errors import ConfigurationError


@dataclass(frozen=True)
class WScrapeConfig:
    store_url: str
    ssh_host: str
    capture_interval_ms: int
    store_login: Path
    ssh_login: Path

    @property
    def interval_s(self) -> float:
        return self.capture_interval_ms / 1000.0

    def with_overrides(self, **overrides: Any) -> "WScrapeConfig":
        """Return a copy with non-None overrides applied and validated."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return config_from_mapping({**_as_mapping(self), **changes})


_PATH_KEYS = ("store_login", "ssh_login")


def _as_mapping(cfg: WScrapeConfig) -> dict:
    return {f.name: getattr(cfg, f.name) for f in fields(cfg)}


def config_from_mapping(data: Mapping[str, Any], *, base_dir: Optional[Path] = None) -> WScrapeConfig:
    """
    Validate a raw mapping (YAML document, CLI flags) into a WScrapeConfig.

    Relative credential paths resolve against base_dir when given.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError("Config root must be a mapping.")

    known = {f.name for f in fields(WScrapeConfig)}
    unknown = sorted(str(k) for k in data if k not in known)
    if unknown:
        raise ConfigurationError(
            f"Unknown config keys: {', '.join(unknown)}",
            hint=f"Valid keys: {', '.join(sorted(known))}",
            details={"unknown": unknown},
        )

    missing = sorted(k for k in known if data.get(k) in (None, ""))
    if missing:
        raise ConfigurationError(
            f"Missing config keys: {', '.join(missing)}",
            details={"missing": missing},
        )

    interval = data["capture_interval_ms"]
    if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        raise ConfigurationError(
            "capture_interval_ms must be a positive integer.",
            details={"capture_interval_ms": interval},
        )

    paths = {}
    for k in _PATH_KEYS:
        p = Path(data[k]).expanduser()
        if base_dir is not None and not p.is_absolute():
            p = Path(base_dir) / p
        paths[k] = p

    return WScrapeConfig(
        store_url=str(data["store_url"]),
        ssh_host=str(data["ssh_host"]),
        capture_interval_ms=int(interval),
        **paths,
    )


def load_config(path: str | Path) -> WScrapeConfig:
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(
            f"Could not read config file {p}.",
            hint=str(e),
            details={"path": str(p)},
        ) from None
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Config file {p} is not valid YAML.",
            hint=str(e),
            details={"path": str(p)},
        ) from None

    return config_from_mapping(data, base_dir=p.resolve().parent)


def merge_config(base: Optional[WScrapeConfig], **overrides: Any) -> WScrapeConfig:
    """CLI helper: file config (optional) with flag overrides on top."""
    if base is None:
        return config_from_mapping({k: v for k, v in overrides.items() if v is not None})
    return base.with_overrides(**overrides)
