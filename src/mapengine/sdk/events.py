"""Bridge SDK callbacks into awaitables."""

from __future__ import annotations

import asyncio
from typing import Any

from mapengine.sdk.base import MapEvents


def wait_for_event(events: MapEvents, instance: Any, name: str) -> asyncio.Future:
    """Register a one-shot listener and return a future it resolves.

    The listener is registered immediately, so callers should call this
    *before* issuing the command that triggers the event.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _resolve(*args: Any) -> None:
        if not future.done():
            future.set_result(args[0] if args else None)

    events.add_listener_once(instance, name, _resolve)
    return future
