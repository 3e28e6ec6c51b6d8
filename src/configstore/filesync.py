"""Read and write the backing JSON file.

Writes go to a sibling `<name>.tmp` under an exclusive flock, then replace the
target, so a concurrent reader (the watcher) never sees a half-written file.
With atomic_writes=False the target is overwritten in place.

FileSync remembers the digest of the content it last read or wrote (what the
in-memory configuration reflects) so the store can skip watcher events that
bring nothing new, including its own writes.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from configstore.errors import ConfigParseError, ConfigReadError, ConfigWriteError

logger = logging.getLogger("configstore.filesync")


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class FileSync:
    """JSON file I/O for one path."""

    def __init__(
        self,
        path: Path | str,
        *,
        indent: int = 4,
        encoding: str = "utf-8",
        atomic: bool = True,
    ) -> None:
        self.path = Path(path)
        self.indent = indent
        self.encoding = encoding
        self.atomic = atomic
        self.synced_digest: str | None = None     # last content read or written

    @property
    def tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def exists(self) -> bool:
        return self.path.exists()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read_bytes(self) -> bytes:
        try:
            with self.path.open("rb") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                return f.read()
        except OSError as exc:
            msg = f"Unable to load data: {exc.strerror or exc}"
            raise ConfigReadError(msg, self.path) from exc

    def read(self) -> Any:
        """Parse the file. Raises ConfigReadError or ConfigParseError."""
        raw = self.read_bytes()
        try:
            text = raw.decode(self.encoding)
        except UnicodeDecodeError as exc:
            msg = f"Unable to decode data as {self.encoding}: {exc.reason}"
            raise ConfigReadError(msg, self.path) from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON: {exc.msg} at line {exc.lineno} column {exc.colno}"
            raise ConfigParseError(msg, self.path, lineno=exc.lineno, colno=exc.colno) from exc
        self.synced_digest = _digest(raw)
        return data

    def current_digest(self) -> str | None:
        """Digest of the file as it is now, or None if it can't be read."""
        try:
            return _digest(self.path.read_bytes())
        except OSError:
            return None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def dumps(self, data: Any) -> bytes:
        return json.dumps(data, indent=self.indent, ensure_ascii=False).encode(self.encoding)

    def write(self, data: Any) -> None:
        """Serialize and persist data. Raises ConfigWriteError."""
        try:
            payload = self.dumps(data)
        except (TypeError, ValueError) as exc:
            msg = f"Unable to serialize configuration: {exc}"
            raise ConfigWriteError(msg, self.path) from exc

        try:
            if self.atomic:
                self._write_atomic(payload)
            else:
                self._write_in_place(payload)
        except OSError as exc:
            msg = f"Unable to write data: {exc.strerror or exc}"
            raise ConfigWriteError(msg, self.path) from exc

        self.synced_digest = _digest(payload)
        logger.debug("wrote %d bytes to %s", len(payload), self.path)

    def _write_atomic(self, payload: bytes) -> None:
        tmp = self.tmp_path
        try:
            with tmp.open("wb") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            tmp.replace(self.path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def _write_in_place(self, payload: bytes) -> None:
        with self.path.open("wb") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            f.write(payload)

    def bootstrap(self, *, create_parents: bool = False) -> bool:
        """Create the file containing `{}` if it does not exist.

        Returns True if the file was created. Raises ConfigWriteError.
        """
        if self.path.exists():
            return False
        try:
            if create_parents:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps({}).encode(self.encoding)
            with self.path.open("xb") as f:
                f.write(payload)
        except FileExistsError:
            return False
        except OSError as exc:
            msg = f"Unable to create file: {exc.strerror or exc}"
            raise ConfigWriteError(msg, self.path) from exc
        logger.info("created %s", self.path)
        return True
