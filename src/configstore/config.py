"""StoreSettings: how a ConfigStore reads, writes and watches its file.

Settings come from an optional configstore.toml (found by walking upward from
the given root or the cwd), then environment overrides. configstore.toml example:

    [store]
    indent = 4
    encoding = "utf-8"
    atomic_writes = true     # write to a temp file, then rename over the target
    create_parents = false   # mkdir -p the file's directory on first load

    [watch]
    enabled = true
    backend = "auto"         # auto | inotify | poll
    poll_interval = 1.0      # seconds, poll backend only

Environment overrides:
    CONFIGSTORE_WATCH_BACKEND   auto | inotify | poll
    CONFIGSTORE_POLL_INTERVAL   float seconds
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_SETTINGS_FILENAME = "configstore.toml"

WATCH_BACKENDS = ("auto", "inotify", "poll")


@dataclass
class StoreSettings:
    """Resolved settings for one store instance."""

    indent: int = 4
    encoding: str = "utf-8"
    atomic_writes: bool = True
    create_parents: bool = False
    watch: bool = True
    watch_backend: str = "auto"
    poll_interval: float = 1.0
    source: Path | None = None      # configstore.toml this was loaded from, if any

    def __post_init__(self) -> None:
        if self.watch_backend not in WATCH_BACKENDS:
            msg = f"unknown watch backend {self.watch_backend!r} (expected one of {', '.join(WATCH_BACKENDS)})"
            raise ValueError(msg)
        if self.poll_interval <= 0:
            msg = f"poll_interval must be positive, got {self.poll_interval}"
            raise ValueError(msg)


def _find_settings(start: Path) -> Path | None:
    """Walk upward from start looking for configstore.toml."""
    for directory in (start, *start.parents):
        candidate = directory / _SETTINGS_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_settings(root: Path | str | None = None, env: dict[str, str] | None = None) -> StoreSettings:
    """Load configstore.toml from root (or search upward from cwd) plus env overrides.

    `root` may also point directly at a .toml file.
    """
    env = os.environ if env is None else env
    start = Path(root) if root else Path.cwd()

    settings_path: Path | None
    if start.is_file():
        settings_path = start
    else:
        settings_path = _find_settings(start.resolve())

    raw: dict[str, Any] = {}
    if settings_path is not None:
        with settings_path.open("rb") as f:
            raw = tomllib.load(f)

    store_section = raw.get("store", {})
    watch_section = raw.get("watch", {})

    backend = env.get("CONFIGSTORE_WATCH_BACKEND") or str(watch_section.get("backend", "auto"))
    poll_interval = env.get("CONFIGSTORE_POLL_INTERVAL") or watch_section.get("poll_interval", 1.0)

    return StoreSettings(
        indent=int(store_section.get("indent", 4)),
        encoding=str(store_section.get("encoding", "utf-8")),
        atomic_writes=bool(store_section.get("atomic_writes", True)),
        create_parents=bool(store_section.get("create_parents", False)),
        watch=bool(watch_section.get("enabled", True)),
        watch_backend=backend.strip().lower(),
        poll_interval=float(poll_interval),
        source=settings_path,
    )
