"""Real file watchers: polling everywhere, inotify on Linux."""

import json
import os
import sys
import threading
import time

import pytest

from configstore import ConfigStore, StoreSettings
from configstore.watcher import PollingWatcher, _ThreadedWatcher, resolve_backend, start_watcher

linux_only = pytest.mark.skipif(not sys.platform.startswith("linux"), reason="inotify is Linux-only")

WAIT = 5.0


class Counter:
    def __init__(self):
        self.count = 0
        self.fired = threading.Event()

    def __call__(self):
        self.count += 1
        self.fired.set()


def _replace(path, text):
    """Save the way editors do: write a sibling file, rename over the target."""
    tmp = path.with_name(path.name + ".swp")
    tmp.write_text(text)
    os.replace(tmp, path)


class TestBackendSelection:
    def test_explicit_backends_pass_through(self):
        assert resolve_backend("poll") == "poll"
        assert resolve_backend("inotify") == "inotify"

    def test_auto(self):
        expected = "inotify" if sys.platform.startswith("linux") else "poll"
        assert resolve_backend("auto") == expected

    def test_unknown_backend(self, config_path):
        with pytest.raises(ValueError):
            start_watcher(config_path, lambda: None, backend="kqueue")

    def test_base_watcher_is_abstract(self, config_path):
        with pytest.raises(TypeError):
            _ThreadedWatcher(config_path, lambda: None)


class TestPollingWatcher:
    def test_fires_on_content_change(self, write_config):
        path = write_config({"a": 1})
        counter = Counter()
        watcher = PollingWatcher(path, counter, interval=0.05).start()
        try:
            path.write_text(json.dumps({"a": 1, "b": 2}))
            assert counter.fired.wait(WAIT)
        finally:
            watcher.close()
            watcher.join(WAIT)

    def test_ignores_deletion(self, write_config):
        path = write_config({"a": 1})
        counter = Counter()
        watcher = PollingWatcher(path, counter, interval=0.05).start()
        try:
            path.unlink()
            time.sleep(0.3)
            assert counter.count == 0
        finally:
            watcher.close()
            watcher.join(WAIT)

    def test_close_stops_delivery(self, write_config):
        path = write_config({"a": 1})
        counter = Counter()
        watcher = PollingWatcher(path, counter, interval=0.05).start()
        watcher.close()
        watcher.join(WAIT)

        path.write_text(json.dumps({"a": 1, "b": 2}))
        time.sleep(0.3)
        assert counter.count == 0


@linux_only
class TestInotifyWatcher:
    def test_fires_on_write(self, write_config):
        path = write_config({"a": 1})
        counter = Counter()
        watcher = start_watcher(path, counter, backend="inotify")
        try:
            path.write_text(json.dumps({"a": 2}))
            assert counter.fired.wait(WAIT)
        finally:
            watcher.close()
            watcher.join(WAIT)

    def test_survives_replace_by_rename(self, write_config):
        path = write_config({"a": 1})
        counter = Counter()
        watcher = start_watcher(path, counter, backend="inotify")
        try:
            _replace(path, json.dumps({"a": 2}))
            assert counter.fired.wait(WAIT)
            counter.fired.clear()

            _replace(path, json.dumps({"a": 3}))
            assert counter.fired.wait(WAIT)
        finally:
            watcher.close()
            watcher.join(WAIT)

    def test_ignores_sibling_files(self, write_config, tmp_path):
        path = write_config({"a": 1})
        counter = Counter()
        watcher = start_watcher(path, counter, backend="inotify")
        try:
            (tmp_path / "other.json").write_text("{}")
            time.sleep(0.3)
            assert counter.count == 0
        finally:
            watcher.close()
            watcher.join(WAIT)

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            start_watcher(tmp_path / "gone" / "config.json", lambda: None, backend="inotify")


@pytest.mark.parametrize(
    "backend",
    [
        "poll",
        pytest.param("inotify", marks=linux_only),
    ],
)
class TestStoreWithRealWatcher:
    def _store(self, backend):
        return ConfigStore(StoreSettings(watch_backend=backend, poll_interval=0.05))

    def test_external_edit_reaches_listener(self, backend, config_path):
        changes = []
        got = threading.Event()

        def on_change(event):
            changes.append(event)
            got.set()

        with self._store(backend) as store:
            store.on_change(on_change)
            store.load(config_path)

            _replace(config_path, json.dumps({"spindle": {"rpm": 12000}}))
            assert got.wait(WAIT)

        assert changes[0].config == {"spindle": {"rpm": 12000}, "state": {"checkForUpdates": True}}

    def test_own_writes_are_quiet(self, backend, config_path):
        changes = []
        with self._store(backend) as store:
            store.on_change(changes.append)
            store.load(config_path)
            store.set("units", "mm")
            time.sleep(0.5)
        assert changes == []
