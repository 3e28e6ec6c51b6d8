"""ConfigStore: an in-memory configuration mirrored to a watched JSON file.

    store = ConfigStore()
    store.on_change(lambda ev: print(ev.config))
    store.load("~/.cncrc")
    store.set("state.checkForUpdates", False)
    store.get("state.checkForUpdates")      # -> False
    store.close()

Three writers share the file: this process (set/unset/sync), anything editing
the file directly (picked up by the watcher), and the default merge under
`state`. set/unset reload before mutating so external edits are not clobbered.

Public operations never raise on I/O failure. They log, emit an "error" event
and return False. Malformed paths raise InvalidPathError before any I/O.
"""

from __future__ import annotations

import copy
import functools
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from configstore.config import StoreSettings
from configstore.defaults import DEFAULT_STATE, merge_defaults
from configstore.errors import (
    ConfigParseError,
    ConfigPathError,
    ConfigReadError,
    ConfigShapeError,
    ConfigStoreError,
    ConfigWriteError,
    WatchError,
)
from configstore.filesync import FileSync
from configstore.models import ConfigEvent, EventKind
from configstore.paths import PathError, PathShapeError, has_path, parse_path, resolve, set_path, unset_path
from configstore.watcher import start_watcher

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from configstore.paths import Segment
    from configstore.watcher import Watcher

    Listener = Callable[[ConfigEvent], None]
    WatcherFactory = Callable[[Path, Callable[[], None]], Watcher]

logger = logging.getLogger("configstore.store")

_MAX_EMIT_DEPTH = 8          # nested emits from listeners that re-enter load/set
_CLOSE_JOIN_TIMEOUT = 2.0


class ConfigStore:
    """File-synchronized configuration with load/change/error listeners."""

    def __init__(
        self,
        settings: StoreSettings | None = None,
        *,
        watcher_factory: WatcherFactory | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self.settings = settings or StoreSettings()
        self._watcher_factory = watcher_factory or functools.partial(
            start_watcher,
            backend=self.settings.watch_backend,
            poll_interval=self.settings.poll_interval,
        )
        self._defaults = dict(DEFAULT_STATE if defaults is None else defaults)

        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._emit_depth = 0

        self._file: FileSync | None = None
        self._config: dict[str, Any] | None = None
        self._watcher: Watcher | None = None
        self._generation = 0    # bumped whenever the watcher is replaced or closed

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path | None:
        return self._file.path if self._file is not None else None

    @property
    def config(self) -> dict[str, Any]:
        """Deep copy of the current configuration ({} before any load)."""
        with self._lock:
            return self._snapshot()

    @property
    def watching(self) -> bool:
        return self._watcher is not None

    def _snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._config) if self._config is not None else {}

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for every event. Returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _on_kind(self, kind: EventKind, callback: Listener) -> Callable[[], None]:
        def listener(event: ConfigEvent) -> None:
            if event.kind == kind:
                callback(event)

        return self.add_listener(listener)

    def on_load(self, callback: Listener) -> Callable[[], None]:
        return self._on_kind("load", callback)

    def on_change(self, callback: Listener) -> Callable[[], None]:
        return self._on_kind("change", callback)

    def on_error(self, callback: Listener) -> Callable[[], None]:
        return self._on_kind("error", callback)

    def _emit(self, event: ConfigEvent) -> None:
        if self._emit_depth >= _MAX_EMIT_DEPTH:
            logger.warning("dropping %s event: listeners re-entered the store %d levels deep", event.kind, self._emit_depth)
            return
        self._emit_depth += 1
        try:
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception:
                    logger.exception("listener %r failed on %s event", listener, event.kind)
        finally:
            self._emit_depth -= 1

    def _report(self, error: ConfigStoreError) -> None:
        self._emit(ConfigEvent("error", error=error))

    # ------------------------------------------------------------------
    # Load / reload / sync
    # ------------------------------------------------------------------

    def load(self, path: Path | str, *, create: bool = True) -> dict[str, Any]:
        """Bind to `path`, reload, emit "load", then (re)install the watcher.

        A missing file is created as `{}` unless create=False. Bootstrap and
        watch failures are reported as error events; the load itself still
        counts. Returns a snapshot of the configuration.
        """
        if not str(path):
            msg = "path must be non-empty"
            raise ValueError(msg)
        file_path = Path(path).expanduser()

        with self._lock:
            self._file = FileSync(
                file_path,
                indent=self.settings.indent,
                encoding=self.settings.encoding,
                atomic=self.settings.atomic_writes,
            )
            if self.reload():
                logger.info('Loaded configuration from "%s"', file_path)
            self._emit(ConfigEvent("load", self._snapshot()))

            self._drop_watcher()

            if create:
                try:
                    self._file.bootstrap(create_parents=self.settings.create_parents)
                except ConfigWriteError as exc:
                    logger.error("bootstrap failed: %s", exc)
                    self._report(exc)
                    return self._snapshot()

            if self.settings.watch:
                self._install_watcher(file_path)

            return self._snapshot()

    def reload(self) -> bool:
        """Re-read the file and merge defaults. False if read/parse failed.

        On failure the in-memory configuration is left untouched. A missing
        file is not an error.
        """
        with self._lock:
            file = self._file
            if file is not None and file.exists():
                try:
                    data = file.read()
                except (ConfigReadError, ConfigParseError) as exc:
                    logger.error('Unable to load data from "%s": %s', file.path, exc)
                    self._report(exc)
                    return False
                self._config = data

            if not isinstance(self._config, dict):
                if self._config is not None:
                    shape = ConfigShapeError(
                        f"expected a JSON object, got {type(self._config).__name__}",
                        file.path if file is not None else None,
                    )
                    logger.error("%s; starting from an empty configuration", shape)
                self._config = {}

            merge_defaults(self._config, self._defaults)
            return True

    def sync(self) -> bool:
        """Write the in-memory configuration to the file. False on failure."""
        with self._lock:
            if self._file is None:
                self._report(ConfigWriteError("no file bound; call load() first"))
                return False
            try:
                self._file.write(self._config if self._config is not None else {})
            except ConfigWriteError as exc:
                logger.error('Unable to write data to "%s": %s', self._file.path, exc)
                self._report(exc)
                return False
            return True

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def has(self, key: str | Sequence[Segment] | None) -> bool:
        if not key:
            return False
        with self._lock:
            return has_path(self._config or {}, key)

    def get(self, key: str | Sequence[Segment] | None = None, default: Any = None) -> Any:
        """Whole configuration when key is None, else the value at `key` or `default`."""
        segments = parse_path(key) if key is not None else None
        with self._lock:
            if self._config is None:
                self.reload()
            if segments is None:
                return self._snapshot()
            try:
                value = resolve(self._config, segments)
            except PathError:
                return default
            return copy.deepcopy(value)

    def set(self, key: str | Sequence[Segment] | None, value: Any) -> bool:
        """Reload, assign, and persist if the reload succeeded.

        Returns True only when the change reached the file. If the reload
        failed the assignment is still applied in memory.
        """
        if not key:
            return False
        segments = parse_path(key)
        with self._lock:
            ok = self.reload()
            if self._config is None:
                self._config = {}
            try:
                set_path(self._config, segments, copy.deepcopy(value))
            except PathShapeError as exc:
                err = ConfigPathError(f"Unable to set {key!r}: {exc}", self.path)
                err.__cause__ = exc
                logger.error("%s", err)
                self._report(err)
                return False
            return self._persist_if(ok, key)

    def unset(self, key: str | Sequence[Segment] | None) -> bool:
        """Reload, remove `key`, and persist if the reload succeeded."""
        if not key:
            return False
        segments = parse_path(key)
        with self._lock:
            ok = self.reload()
            if self._config is not None:
                unset_path(self._config, segments)
            return self._persist_if(ok, key)

    def _persist_if(self, reloaded: bool, key: object) -> bool:
        if not reloaded:
            logger.warning("change to %r kept in memory only: reload failed, not writing %s", key, self.path)
            return False
        return self.sync()

    # ------------------------------------------------------------------
    # Watcher
    # ------------------------------------------------------------------

    def _install_watcher(self, file_path: Path) -> None:
        self._generation += 1
        generation = self._generation
        try:
            self._watcher = self._watcher_factory(file_path, lambda: self._on_file_changed(generation))
        except (OSError, ImportError, ValueError) as exc:
            err = WatchError(f"Unable to watch file: {exc}", file_path)
            err.__cause__ = exc
            logger.error("%s", err)
            self._report(err)

    def _drop_watcher(self) -> Watcher | None:
        watcher, self._watcher = self._watcher, None
        self._generation += 1
        if watcher is not None:
            watcher.close()
        return watcher

    def _on_file_changed(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._file is None:
                logger.debug("ignoring event from a replaced watcher")
                return
            digest = self._file.current_digest()
            if digest is not None and digest == self._file.synced_digest:
                logger.debug('"%s" already matches memory; not reloading', self._file.path)
                return
            logger.debug('"%s" has been changed', self._file.path)
            if self.reload():
                self._emit(ConfigEvent("change", self._snapshot()))

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the watcher. The store stays usable; load() re-arms it."""
        with self._lock:
            watcher = self._drop_watcher()
        if watcher is not None:
            watcher.join(_CLOSE_JOIN_TIMEOUT)

    def __enter__(self) -> ConfigStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
