"""Error kinds raised inside the store and reported through error events.

None of these escape ConfigStore's public operations; they travel as the
`error` field of a ConfigEvent. The path helpers raise their own
InvalidPathError / PathError family (see configstore.paths).
"""

from __future__ import annotations

from pathlib import Path


class ConfigStoreError(Exception):
    """Base class. `path` is the backing file involved, when known."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        msg = super().__str__()
        if self.path is not None:
            return f"{msg} ({self.path})"
        return msg


class ConfigReadError(ConfigStoreError):
    """The file exists but could not be read."""


class ConfigParseError(ConfigStoreError):
    """The file content is not valid JSON."""

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        lineno: int | None = None,
        colno: int | None = None,
    ) -> None:
        super().__init__(message, path)
        self.lineno = lineno
        self.colno = colno


class ConfigShapeError(ConfigStoreError):
    """Parsed JSON is not an object. Recovered locally, never emitted."""


class ConfigWriteError(ConfigStoreError):
    """Persisting or bootstrapping the file failed."""


class WatchError(ConfigStoreError):
    """Installing a file watch failed."""


class ConfigPathError(ConfigStoreError):
    """A key path runs into a value of the wrong type (e.g. a name on a list)."""
