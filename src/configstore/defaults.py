"""Default values guaranteed under the reserved `state` key."""

from __future__ import annotations

import copy
import logging
from typing import Any

logger = logging.getLogger("configstore.defaults")

STATE_KEY = "state"

DEFAULT_STATE: dict[str, Any] = {
    "checkForUpdates": True,
}


def merge_defaults(config: dict[str, Any], defaults: dict[str, Any] | None = None) -> dict[str, Any]:
    """Fill gaps in config["state"] from defaults. Existing values win.

    Mutates and returns `config`. A `state` that is not an object is replaced
    by the defaults alone.
    """
    base = DEFAULT_STATE if defaults is None else defaults
    state = config.get(STATE_KEY)
    if state is None:
        state = {}
    elif not isinstance(state, dict):
        logger.warning("%r is a %s, not an object; resetting to defaults", STATE_KEY, type(state).__name__)
        state = {}
    config[STATE_KEY] = {**copy.deepcopy(base), **state}
    return config
