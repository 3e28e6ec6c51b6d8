"""Event values delivered to store listeners."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from configstore.errors import ConfigStoreError

EventKind = Literal["load", "change", "error"]


@dataclass(frozen=True)
class ConfigEvent:
    """One notification from a ConfigStore.

    load/change carry a deep copy of the configuration at emission time;
    error carries the ConfigStoreError (with `path` attached when known).
    """

    kind: EventKind
    config: dict[str, Any] | None = None
    error: ConfigStoreError | None = None

    def __repr__(self) -> str:
        if self.kind == "error":
            return f"ConfigEvent(error={self.error!r})"
        keys = sorted(self.config) if self.config else []
        return f"ConfigEvent({self.kind}, keys={keys})"

