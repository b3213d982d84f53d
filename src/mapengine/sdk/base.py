"""Capability surface consumed from the external map-rendering SDK.

The engine never talks to a concrete SDK directly; it only uses the
protocols below.  Coordinates use the SDK convention of (lat, lng).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, Sequence, Union, runtime_checkable


@dataclass(frozen=True)
class LatLng:
    """A geographic point."""

    lat: float
    lng: float

    @classmethod
    def coerce(cls, value: "LatLngLike") -> "LatLng":
        """Accept a LatLng, a {"lat", "lng"} mapping or a (lat, lng) pair."""
        if isinstance(value, LatLng):
            return value
        if isinstance(value, Mapping):
            return cls(float(value["lat"]), float(value["lng"]))
        lat, lng = value
        return cls(float(lat), float(lng))

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


LatLngLike = Union[LatLng, Mapping[str, float], Sequence[float]]


@dataclass(frozen=True)
class LatLngBounds:
    """A viewport rectangle.

    ``west`` may be greater than ``east`` when the viewport crosses the
    antimeridian.
    """

    south: float
    west: float
    north: float
    east: float

    def contains(self, point: LatLngLike) -> bool:
        p = LatLng.coerce(point)
        if not (self.south <= p.lat <= self.north):
            return False
        if self.west <= self.east:
            return self.west <= p.lng <= self.east
        return p.lng >= self.west or p.lng <= self.east


Handler = Callable[..., Any]


@runtime_checkable
class MapEvents(Protocol):
    """Event registration (one-shot and persistent listeners)."""

    def add_listener(self, instance: Any, event: str, handler: Handler) -> Any: ...

    def add_listener_once(self, instance: Any, event: str, handler: Handler) -> Any: ...

    def remove_listener(self, listener: Any) -> None: ...

    def clear_instance_listeners(self, instance: Any) -> None: ...


@runtime_checkable
class MapHandle(Protocol):
    """The underlying renderable map."""

    def get_zoom(self) -> int | None: ...

    def set_zoom(self, zoom: int) -> None: ...

    def get_bounds(self) -> LatLngBounds | None: ...

    def get_center(self) -> LatLng | None: ...

    def pan_to(self, location: LatLng) -> None: ...


@runtime_checkable
class DataHandle(Protocol):
    """Grouped vector layer holding many polygon features."""

    def add(self, feature: Any) -> Any: ...

    def remove(self, feature: Any) -> None: ...

    def set_style(self, style: dict[str, Any]) -> None: ...

    def override_style(self, feature: Any, style: dict[str, Any]) -> None: ...

    def revert_style(self, feature: Any | None = None) -> None: ...

    def set_map(self, map_handle: MapHandle | None) -> None: ...

    def get_map(self) -> MapHandle | None: ...


@runtime_checkable
class MarkerHandle(Protocol):
    """A single marker; assigning ``map`` attaches it, None detaches it."""

    map: MapHandle | None


@runtime_checkable
class MapSDK(Protocol):
    """Entry point to the external SDK."""

    events: MapEvents

    async def import_library(self, name: str) -> Any: ...

    def create_map(self, container: Any, options: dict[str, Any]) -> MapHandle: ...

    def create_data(self, options: dict[str, Any]) -> DataHandle: ...

    def create_marker(self, options: dict[str, Any]) -> MarkerHandle: ...

    def create_data_feature(
        self,
        feature_id: str,
        geometry: list[list[LatLng]],
        properties: dict[str, Any] | None = None,
    ) -> Any: ...
