"""Dotted-path access over nested JSON-like data.

Path syntax:

    state.checkForUpdates        # dict keys separated by dots
    machines[0].port             # [N] indexes into a list
    macros["spindle.on"].body    # quoted brackets for keys containing dots

A path can also be given pre-split as a list/tuple of str/int segments.

Lookups distinguish a missing key (PathNotFoundError) from a path that runs
into a value of the wrong type (PathShapeError). get_path() hides both behind a
default; callers that care use resolve() directly.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

Segment = str | int

_NAME = re.compile(r"[^.\[\]]+")
_BRACKET = re.compile(r"""\[(?:(\d+)|"([^"]*)"|'([^']*)')\]""")

_MISSING = object()


class InvalidPathError(ValueError):
    """The path string is empty or malformed."""


class PathError(LookupError):
    """Base for lookup failures."""

    def __init__(self, message: str, segments: Sequence[Segment], depth: int) -> None:
        super().__init__(message)
        self.segments = list(segments)
        self.depth = depth


class PathNotFoundError(PathError):
    """A key or index along the path does not exist."""


class PathShapeError(PathError):
    """An intermediate value cannot be descended into with the given segment."""


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def parse_path(key: str | Sequence[Segment]) -> list[Segment]:
    """Split `key` into segments: "a.b[0]" -> ["a", "b", 0]."""
    if isinstance(key, (list, tuple)):
        if not key:
            msg = "empty path"
            raise InvalidPathError(msg)
        for seg in key:
            if isinstance(seg, bool) or not isinstance(seg, (str, int)):
                msg = f"invalid path segment {seg!r}"
                raise InvalidPathError(msg)
            if isinstance(seg, int) and seg < 0:
                msg = f"negative index {seg} in path"
                raise InvalidPathError(msg)
        return list(key)

    if not isinstance(key, str) or not key:
        msg = f"invalid path {key!r}"
        raise InvalidPathError(msg)

    segments: list[Segment] = []
    pos = 0
    n = len(key)

    m = _NAME.match(key)
    if m:
        segments.append(m.group())
        pos = m.end()
    elif key[0] != "[":
        msg = f"path must start with a key or index: {key!r}"
        raise InvalidPathError(msg)

    while pos < n:
        ch = key[pos]
        if ch == ".":
            m = _NAME.match(key, pos + 1)
            if not m:
                msg = f"empty segment in path {key!r}"
                raise InvalidPathError(msg)
            segments.append(m.group())
            pos = m.end()
        elif ch == "[":
            m = _BRACKET.match(key, pos)
            if not m:
                msg = f"malformed index in path {key!r}"
                raise InvalidPathError(msg)
            index, dquoted, squoted = m.groups()
            if index is not None:
                segments.append(int(index))
            else:
                segments.append(dquoted if dquoted is not None else squoted)
            pos = m.end()
        else:
            msg = f"unexpected {ch!r} in path {key!r}"
            raise InvalidPathError(msg)

    return segments


def format_path(segments: Sequence[Segment]) -> str:
    """Inverse of parse_path for display purposes."""
    out = ""
    for seg in segments:
        if isinstance(seg, int):
            out += f"[{seg}]"
        elif "." in seg or "[" in seg or "]" in seg:
            out += f'["{seg}"]'
        else:
            out += f".{seg}" if out else seg
    return out


# ---------------------------------------------------------------------------
# Container helpers
# ---------------------------------------------------------------------------


def _dict_key(seg: Segment) -> str:
    # JSON object keys are always strings
    return str(seg)


def _list_index(seg: Segment) -> int | None:
    if isinstance(seg, int):
        return seg
    if seg.isdigit():
        return int(seg)
    return None


def _child(container: Any, seg: Segment) -> Any:
    if isinstance(container, dict):
        return container.get(_dict_key(seg), _MISSING)
    if isinstance(container, list):
        idx = _list_index(seg)
        if idx is None or idx >= len(container):
            return _MISSING
        return container[idx]
    return _MISSING


def _assign(container: Any, seg: Segment, value: Any, segments: Sequence[Segment], depth: int) -> None:
    if isinstance(container, dict):
        container[_dict_key(seg)] = value
        return
    if isinstance(container, list):
        idx = _list_index(seg)
        if idx is None:
            msg = f"cannot use key {seg!r} on a list at {format_path(segments[:depth]) or '<root>'}"
            raise PathShapeError(msg, segments, depth)
        if idx >= len(container):
            container.extend([None] * (idx + 1 - len(container)))
        container[idx] = value
        return
    msg = f"cannot assign into {type(container).__name__} at {format_path(segments[:depth]) or '<root>'}"
    raise PathShapeError(msg, segments, depth)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve(data: Any, key: str | Sequence[Segment]) -> Any:
    """Return the value at `key`. Raises PathNotFoundError or PathShapeError."""
    segments = parse_path(key)
    current = data
    for depth, seg in enumerate(segments):
        if isinstance(current, dict):
            k = _dict_key(seg)
            if k not in current:
                msg = f"{format_path(segments[: depth + 1])} not found"
                raise PathNotFoundError(msg, segments, depth)
            current = current[k]
        elif isinstance(current, list):
            idx = _list_index(seg)
            if idx is None:
                msg = f"cannot use key {seg!r} on a list at {format_path(segments[:depth]) or '<root>'}"
                raise PathShapeError(msg, segments, depth)
            if idx >= len(current):
                msg = f"{format_path(segments[: depth + 1])} out of range"
                raise PathNotFoundError(msg, segments, depth)
            current = current[idx]
        else:
            msg = f"{format_path(segments[:depth]) or '<root>'} is a {type(current).__name__}, not a container"
            raise PathShapeError(msg, segments, depth)
    return current


def get_path(data: Any, key: str | Sequence[Segment], default: Any = None) -> Any:
    try:
        return resolve(data, key)
    except PathError:
        return default


def has_path(data: Any, key: str | Sequence[Segment]) -> bool:
    try:
        resolve(data, key)
    except PathError:
        return False
    return True


def set_path(data: Any, key: str | Sequence[Segment], value: Any) -> None:
    """Assign `value` at `key`, creating intermediate containers.

    A missing or scalar intermediate is replaced with a list when the next
    segment is an int index, otherwise with a dict. Lists are padded with None.
    """
    segments = parse_path(key)
    current = data
    for depth, (seg, nxt) in enumerate(zip(segments, segments[1:], strict=False)):
        child = _child(current, seg)
        if not isinstance(child, (dict, list)):
            child = [] if isinstance(nxt, int) else {}
            _assign(current, seg, child, segments, depth)
        current = child
    _assign(current, segments[-1], value, segments, len(segments) - 1)


def unset_path(data: Any, key: str | Sequence[Segment]) -> bool:
    """Remove the value at `key`. Returns False if nothing was there."""
    segments = parse_path(key)
    if len(segments) == 1:
        parent = data
    else:
        try:
            parent = resolve(data, segments[:-1])
        except PathError:
            return False

    last = segments[-1]
    if isinstance(parent, dict):
        k = _dict_key(last)
        if k in parent:
            del parent[k]
            return True
        return False
    if isinstance(parent, list):
        idx = _list_index(last)
        if idx is not None and idx < len(parent):
            del parent[idx]
            return True
    return False
