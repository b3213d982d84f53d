"""FakeMapSDK — deterministic in-memory map SDK.

Implements the capability surface from ``mapengine.sdk.base`` without a
browser, so the engine can run headless and tests can assert on exactly which
commands were issued.  Asynchronous SDK behaviour is reproduced on the running
asyncio loop:

  set_zoom(z)   -> "zoom_changed" fires on the next loop iteration (only if
                   the level actually changed, clamped to min/max zoom)
  pan_to(p)     -> "center_changed" then "idle" fire on the next iteration
  import_library(name) -> sleeps ``load_delay`` then succeeds or raises

Viewport bounds are derived from centre, zoom and viewport pixel size using
256px tiles, i.e. a 512px-wide map at zoom 0 spans the whole world.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from mapengine.sdk.base import Handler, LatLng, LatLngBounds

_MAX_LAT = 85.0


class FakeLibraryError(RuntimeError):
    """Raised by FakeMapSDK.import_library for a library configured to fail."""


@dataclass
class FakeListener:
    instance: Any
    event: str
    handler: Handler
    once: bool = False


@dataclass
class FakeMouseEvent:
    """Payload passed to data-layer mouse listeners."""

    feature: Any


class FakeEvents:
    """Listener registry with one-shot and persistent listeners."""

    def __init__(self) -> None:
        self._listeners: list[FakeListener] = []

    def add_listener(self, instance: Any, event: str, handler: Handler) -> FakeListener:
        listener = FakeListener(instance, event, handler)
        self._listeners.append(listener)
        return listener

    def add_listener_once(self, instance: Any, event: str, handler: Handler) -> FakeListener:
        listener = FakeListener(instance, event, handler, once=True)
        self._listeners.append(listener)
        return listener

    def remove_listener(self, listener: FakeListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def clear_instance_listeners(self, instance: Any) -> None:
        self._listeners = [l for l in self._listeners if l.instance is not instance]

    def listener_count(self, instance: Any, event: str | None = None) -> int:
        return sum(
            1 for l in self._listeners
            if l.instance is instance and (event is None or l.event == event)
        )

    def trigger(self, instance: Any, event: str, *args: Any) -> None:
        """Fire ``event`` on ``instance`` synchronously."""
        for listener in list(self._listeners):
            if listener.instance is not instance or listener.event != event:
                continue
            if listener.once:
                self.remove_listener(listener)
            listener.handler(*args)


def _schedule(callback: Any, *args: Any) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback(*args)
        return
    loop.call_soon(callback, *args)


def _wrap_lng(lng: float) -> float:
    return ((lng + 180.0) % 360.0) - 180.0


class FakeMap:
    """In-memory map handle that records every zoom and pan command."""

    def __init__(self, sdk: "FakeMapSDK", container: Any, options: dict[str, Any]) -> None:
        self._sdk = sdk
        self.container = container
        self.options = dict(options)
        self.map_id = options.get("map_id")
        self.zoom: int | None = options.get("zoom", 10)
        self.center = LatLng.coerce(options.get("center", (0.0, 0.0)))
        self.zoom_commands: list[int] = []
        # (location, bounds at the moment pan_to was called)
        self.pan_commands: list[tuple[LatLng, LatLngBounds | None]] = []
        self.history: list[tuple[str, Any]] = []

    def get_zoom(self) -> int | None:
        return self.zoom

    def set_zoom(self, zoom: int) -> None:
        self.zoom_commands.append(zoom)
        self.history.append(("zoom", zoom))
        level = max(self._sdk.min_zoom, min(self._sdk.max_zoom, int(zoom)))
        if level == self.zoom:
            return
        self.zoom = level
        _schedule(self._sdk.events.trigger, self, "zoom_changed")

    def get_center(self) -> LatLng | None:
        return self.center

    def get_bounds(self) -> LatLngBounds | None:
        if not self._sdk.report_bounds or self.zoom is None:
            return None
        return self.bounds_at(self.zoom, self.center)

    def bounds_at(self, zoom: int, center: LatLng) -> LatLngBounds:
        width, height = self._sdk.viewport_size
        scale = 2 ** zoom
        half_lng = 180.0 * (width / 256.0) / scale
        half_lat = _MAX_LAT * (height / 256.0) / scale
        south = max(-_MAX_LAT, center.lat - half_lat)
        north = min(_MAX_LAT, center.lat + half_lat)
        if half_lng >= 180.0:
            return LatLngBounds(south, -180.0, north, 180.0)
        return LatLngBounds(
            south, _wrap_lng(center.lng - half_lng), north, _wrap_lng(center.lng + half_lng)
        )

    def pan_to(self, location: LatLng) -> None:
        location = LatLng.coerce(location)
        self.pan_commands.append((location, self.get_bounds()))
        self.history.append(("pan", location))
        self.center = location
        _schedule(self._sdk.events.trigger, self, "center_changed")
        _schedule(self._sdk.events.trigger, self, "idle")


@dataclass
class FakeDataFeature:
    """A polygon feature held by a FakeData layer."""

    id: str
    geometry: list[list[LatLng]]
    properties: dict[str, Any] = field(default_factory=dict)


class FakeData:
    """Grouped vector layer with a shared style and per-feature overrides."""

    def __init__(self, sdk: "FakeMapSDK", options: dict[str, Any]) -> None:
        self._sdk = sdk
        self.options = {k: v for k, v in options.items() if k != "map"}
        self.map: FakeMap | None = options.get("map")
        self.features: dict[str, FakeDataFeature] = {}
        self.style: dict[str, Any] = {}
        self.overrides: dict[str, dict[str, Any]] = {}

    def add(self, feature: FakeDataFeature) -> FakeDataFeature:
        self.features[feature.id] = feature
        return feature

    def remove(self, feature: FakeDataFeature) -> None:
        self.features.pop(feature.id, None)
        self.overrides.pop(feature.id, None)

    def contains(self, feature: FakeDataFeature) -> bool:
        return feature.id in self.features

    def set_style(self, style: dict[str, Any]) -> None:
        self.style = dict(style)

    def override_style(self, feature: FakeDataFeature, style: dict[str, Any]) -> None:
        self.overrides.setdefault(feature.id, {}).update(style)

    def revert_style(self, feature: FakeDataFeature | None = None) -> None:
        if feature is None:
            self.overrides.clear()
        else:
            self.overrides.pop(feature.id, None)

    def set_map(self, map_handle: FakeMap | None) -> None:
        self.map = map_handle

    def get_map(self) -> FakeMap | None:
        return self.map

    def effective_style(self, feature: FakeDataFeature) -> dict[str, Any]:
        return {**self.style, **self.overrides.get(feature.id, {})}

    def is_rendered(self, feature: FakeDataFeature) -> bool:
        """True if the feature would currently be drawn."""
        return (
            self.map is not None
            and feature.id in self.features
            and self.effective_style(feature).get("visible", True)
        )


class FakeMarker:
    """Marker whose ``map`` attribute controls attachment."""

    def __init__(self, options: dict[str, Any]) -> None:
        self.options = {k: v for k, v in options.items() if k not in ("map", "position")}
        self.position = LatLng.coerce(options["position"]) if options.get("position") is not None else None
        self.map: FakeMap | None = options.get("map")

    @property
    def attached(self) -> bool:
        return self.map is not None


class FakeMapSDK:
    """Deterministic stand-in for the external map SDK."""

    def __init__(
        self,
        *,
        failing_libraries: Iterable[str] | Mapping[str, BaseException] = (),
        load_delay: float = 0.0,
        report_bounds: bool = True,
        viewport_size: tuple[int, int] = (512, 512),
        min_zoom: int = 0,
        max_zoom: int = 22,
    ) -> None:
        if isinstance(failing_libraries, Mapping):
            self._failures = dict(failing_libraries)
        else:
            self._failures = {
                name: FakeLibraryError(f"Library '{name}' failed to load")
                for name in failing_libraries
            }
        self.load_delay = load_delay
        self.report_bounds = report_bounds
        self.viewport_size = viewport_size
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.events = FakeEvents()
        self.import_calls: list[str] = []
        self.maps: list[FakeMap] = []
        self.data_layers: list[FakeData] = []
        self.markers: list[FakeMarker] = []

    async def import_library(self, name: str) -> str:
        self.import_calls.append(name)
        await asyncio.sleep(self.load_delay)
        if name in self._failures:
            raise self._failures[name]
        return name

    def create_map(self, container: Any, options: dict[str, Any]) -> FakeMap:
        handle = FakeMap(self, container, options)
        self.maps.append(handle)
        return handle

    def create_data(self, options: dict[str, Any]) -> FakeData:
        data = FakeData(self, options)
        self.data_layers.append(data)
        return data

    def create_marker(self, options: dict[str, Any]) -> FakeMarker:
        marker = FakeMarker(options)
        self.markers.append(marker)
        return marker

    def create_data_feature(
        self,
        feature_id: str,
        geometry: list[list[LatLng]],
        properties: dict[str, Any] | None = None,
    ) -> FakeDataFeature:
        return FakeDataFeature(feature_id, geometry, dict(properties or {}))
