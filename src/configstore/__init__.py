"""JSON configuration store mirrored to a watched file.

Layout of a managed file:
    {
      "state": {"checkForUpdates": true},   # defaults merged on every reload
      ...                                   # caller-defined keys, opaque to the store
    }

ConfigStore is the public API:
    store = ConfigStore()
    store.load("/path/to/config.json")
    store.get("state.checkForUpdates")
    store.set("machines[0].port", "/dev/ttyUSB0")

External edits to the file are picked up by an inotify (Linux) or polling
watcher and reported to listeners as "change" events.
"""

from configstore.config import StoreSettings, load_settings
from configstore.defaults import DEFAULT_STATE
from configstore.errors import (
    ConfigParseError,
    ConfigPathError,
    ConfigReadError,
    ConfigShapeError,
    ConfigStoreError,
    ConfigWriteError,
    WatchError,
)
from configstore.models import ConfigEvent
from configstore.paths import InvalidPathError, PathNotFoundError, PathShapeError
from configstore.store import ConfigStore

__all__ = [
    "DEFAULT_STATE",
    "ConfigEvent",
    "ConfigParseError",
    "ConfigPathError",
    "ConfigReadError",
    "ConfigShapeError",
    "ConfigStore",
    "ConfigStoreError",
    "ConfigWriteError",
    "InvalidPathError",
    "PathNotFoundError",
    "PathShapeError",
    "StoreSettings",
    "WatchError",
    "load_settings",
]
