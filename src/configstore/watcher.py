"""Change watchers: one background thread per watched file.

inotify (Linux) watches the file's *parent directory* for IN_CLOSE_WRITE and
IN_MOVED_TO and filters by file name. Watching the directory rather than the
file keeps the watch alive when the file is replaced by rename, which is how
both FileSync and most editors save.

Polling compares (inode, mtime_ns, size) every `poll_interval` seconds and is
used off Linux or when explicitly requested.

Only content changes are reported: deletes and renames-away are ignored.
Events are not debounced; each qualifying event invokes the callback once.
"""

from __future__ import annotations

import abc
import logging
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("configstore.watcher")

_INOTIFY_TIMEOUT_MS = 500   # how often the inotify thread checks for close()


class Watcher(Protocol):
    """Handle returned by a watcher factory. Owned by exactly one store."""

    def close(self) -> None: ...

    def join(self, timeout: float | None = None) -> None: ...


class _ThreadedWatcher(abc.ABC):
    """Shared lifecycle for the thread-backed watchers."""

    kind = "base"

    def __init__(self, path: Path | str, callback: Callable[[], None]) -> None:
        self.path = Path(path)
        self._callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"configstore-{self.kind}:{self.path.name}",
            daemon=True,
        )

    def start(self) -> _ThreadedWatcher:
        self._thread.start()
        return self

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def close(self) -> None:
        """Stop delivering events. Does not wait for the thread to exit."""
        if not self._stop.is_set():
            self._stop.set()
            logger.debug("%s watcher closed: %s", self.kind, self.path)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is threading.current_thread() or not self._thread.is_alive():
            return
        self._thread.join(timeout)

    def _fire(self) -> None:
        if self._stop.is_set():
            return
        try:
            self._callback()
        except Exception:
            logger.exception("change callback failed for %s", self.path)

    @abc.abstractmethod
    def _run(self) -> None: ...


# ---------------------------------------------------------------------------
# inotify
# ---------------------------------------------------------------------------


class InotifyWatcher(_ThreadedWatcher):
    kind = "inotify"

    def __init__(
        self,
        path: Path | str,
        callback: Callable[[], None],
        timeout_ms: int = _INOTIFY_TIMEOUT_MS,
    ) -> None:
        import inotify_simple  # type: ignore[import]

        super().__init__(path, callback)
        self._timeout_ms = timeout_ms
        self._inotify = inotify_simple.INotify()
        flags = inotify_simple.flags  # type: ignore[attr-defined]
        self._mask = flags.CLOSE_WRITE | flags.MOVED_TO
        try:
            self._inotify.add_watch(str(self.path.parent), self._mask)
        except OSError:
            self._inotify.close()
            raise

    def _run(self) -> None:
        try:
            while not self._stop.is_set():
                for event in self._inotify.read(timeout=self._timeout_ms):
                    if event.name != self.path.name or not event.mask & self._mask:
                        continue
                    logger.debug("inotify event mask=%#x on %s", event.mask, self.path)
                    self._fire()
        except OSError:
            logger.exception("inotify watch on %s failed", self.path)
        finally:
            self._inotify.close()


# ---------------------------------------------------------------------------
# Polling fallback
# ---------------------------------------------------------------------------


class PollingWatcher(_ThreadedWatcher):
    kind = "poll"

    def __init__(self, path: Path | str, callback: Callable[[], None], interval: float = 1.0) -> None:
        super().__init__(path, callback)
        self.interval = interval
        self._last = self._signature()

    def _signature(self) -> tuple[int, int, int] | None:
        try:
            st = self.path.stat()
        except OSError:
            return None
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            sig = self._signature()
            if sig is None or sig == self._last:
                continue
            self._last = sig
            logger.debug("mtime change on %s", self.path)
            self._fire()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def resolve_backend(backend: str) -> str:
    """Map "auto" to a concrete backend for this platform."""
    if backend == "auto":
        return "inotify" if sys.platform.startswith("linux") else "poll"
    return backend


def start_watcher(
    path: Path | str,
    callback: Callable[[], None],
    *,
    backend: str = "auto",
    poll_interval: float = 1.0,
) -> Watcher:
    """Start watching `path`; `callback` runs on the watcher thread per change."""
    kind = resolve_backend(backend)
    watcher: _ThreadedWatcher
    if kind == "inotify":
        watcher = InotifyWatcher(path, callback)
    elif kind == "poll":
        watcher = PollingWatcher(path, callback, interval=poll_interval)
    else:
        msg = f"unknown watch backend {backend!r}"
        raise ValueError(msg)
    watcher.start()
    logger.info("%s watching %s", kind, path)
    return watcher
