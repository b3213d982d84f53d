"""Process-unique id generation for maps, layers and features."""

from __future__ import annotations

import itertools

_counter = itertools.count(1)


def use_id(prefix: str = "mapengine") -> str:
    """Return the next id from the global counter, e.g. ``layer-7``."""
    return f"{prefix}-{next(_counter)}"
