"""Smooth zoom/pan animation over an asynchronous map SDK.

The SDK applies zoom changes asynchronously and drops frames if a second
zoom command arrives before the first is confirmed, so every step here waits
for the SDK's "zoom_changed" event before issuing the next level:

    zoom_to(13) from 10:  set 11 -> confirmed -> set 12 -> confirmed -> set 13

A level the SDK refuses (outside its own zoom range) ends the zoom early
instead of waiting for a confirmation that never comes.

``smooth_zoom`` with a location first zooms out one level at a time until the
location is inside the viewport, then pans (waiting for "idle"), then zooms
in to the target.  Panning is never issued while the location is off-screen.

Concurrent animations on the same map are not serialized against each other;
callers that start overlapping animations must order them themselves.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from mapengine.sdk.base import LatLng, LatLngLike, MapEvents, MapHandle
from mapengine.sdk.events import wait_for_event
from mapengine.state_machine import StateMachine
from mapengine.surface.states import PAN, SETTLE, ZOOM, MapState
from mapengine.utils import clamp


class SmoothZoomAnimator:
    """Drives a map's zoom and pan one SDK-confirmed step at a time."""

    def __init__(
        self,
        handle: MapHandle,
        events: MapEvents,
        state_machine: StateMachine,
        *,
        step_delay: float,
        min_zoom: int,
        max_zoom: int,
    ) -> None:
        self._handle = handle
        self._events = events
        self._sm = state_machine
        self.step_delay = step_delay
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom

    @property
    def state(self) -> MapState:
        return MapState(self._sm.current.name)

    def contains(self, point: LatLngLike) -> bool:
        """True iff the current viewport contains ``point``.

        No reported viewport counts as not containing it.
        """
        bounds = self._handle.get_bounds()
        if bounds is None:
            return False
        return bounds.contains(point)

    async def smooth_zoom(self, target_zoom: int, location: LatLngLike | None = None) -> None:
        if self._handle.get_zoom() is None:
            return
        if location is None:
            await self.zoom_to(target_zoom)
        else:
            await self._pan_and_zoom(target_zoom, LatLng.coerce(location))
        self.settle()

    async def zoom_to(self, target_zoom: int) -> int:
        """Step to ``target_zoom`` one confirmed level at a time.

        Returns:
            The number of confirmed level changes.
        """
        target = clamp(int(target_zoom), self.min_zoom, self.max_zoom)
        steps = 0
        while True:
            current = self._handle.get_zoom()
            if current is None or current == target:
                return steps
            next_level = current + 1 if target > current else current - 1
            if self.state is not MapState.ZOOMING:
                self._sm.send(ZOOM)
            confirmed = wait_for_event(self._events, self._handle, "zoom_changed")
            await asyncio.sleep(self.step_delay)
            self._handle.set_zoom(next_level)
            if self._handle.get_zoom() == current:
                # the SDK refused the level (outside its own zoom range)
                confirmed.cancel()
                logger.warning(
                    f"Map stayed at zoom {current} when asked for {next_level}; "
                    f"zoom stopped short of {target}"
                )
                return steps
            await confirmed
            steps += 1
            logger.debug(f"Zoom step {current} -> {next_level} (target {target})")

    async def _pan_and_zoom(self, target_zoom: int, location: LatLng) -> None:
        while not self.contains(location):
            current = self._handle.get_zoom()
            if current is None:
                return
            if current <= self.min_zoom:
                logger.warning(
                    f"Location {location.lat:.5f},{location.lng:.5f} not in view "
                    f"at minimum zoom {self.min_zoom}; pan skipped"
                )
                return
            if await self.zoom_to(current - 1) == 0:
                logger.warning(
                    f"Location {location.lat:.5f},{location.lng:.5f} not in view "
                    f"at zoom {current}, the widest the map allows; pan skipped"
                )
                return

        self._sm.send(PAN)
        settled = wait_for_event(self._events, self._handle, "idle")
        self._handle.pan_to(location)
        await settled
        logger.debug(f"Pan settled at {location.lat:.5f},{location.lng:.5f}")
        await self.zoom_to(target_zoom)

    def settle(self) -> None:
        """Return the machine to idle once an animation has finished."""
        if self.state is not MapState.IDLE:
            self._sm.send(SETTLE)
