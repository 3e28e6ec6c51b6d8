"""Pytest fixtures for configstore tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from configstore import ConfigEvent, ConfigStore, StoreSettings


class FakeWatcher:
    """Stands in for a real watcher; tests call fire() to simulate an event."""

    def __init__(self, path: Path, callback: Callable[[], None]) -> None:
        self.path = path
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def join(self, timeout: float | None = None) -> None:
        pass

    def fire(self) -> None:
        self.callback()


class FakeWatcherFactory:
    def __init__(self) -> None:
        self.watchers: list[FakeWatcher] = []

    def __call__(self, path: Path, callback: Callable[[], None]) -> FakeWatcher:
        watcher = FakeWatcher(path, callback)
        self.watchers.append(watcher)
        return watcher

    @property
    def latest(self) -> FakeWatcher:
        return self.watchers[-1]


class EventRecorder:
    def __init__(self) -> None:
        self.events: list[ConfigEvent] = []

    def __call__(self, event: ConfigEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [ev.kind for ev in self.events]

    def of(self, kind: str) -> list[ConfigEvent]:
        return [ev for ev in self.events if ev.kind == kind]


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Path to a not-yet-existing config file in a temp directory."""
    return tmp_path / "config.json"


@pytest.fixture
def write_config(config_path: Path) -> Callable[[Any], Path]:
    """Write a value (JSON-encoded) or raw text to the config file."""

    def _write(content: Any) -> Path:
        text = content if isinstance(content, str) else json.dumps(content)
        config_path.write_text(text, encoding="utf-8")
        return config_path

    return _write


@pytest.fixture
def watchers() -> FakeWatcherFactory:
    return FakeWatcherFactory()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def store(watchers: FakeWatcherFactory, recorder: EventRecorder) -> Generator[ConfigStore, None, None]:
    """A store wired to fake watchers, recording every event."""
    s = ConfigStore(StoreSettings(), watcher_factory=watchers)
    s.add_listener(recorder)
    yield s
    s.close()
