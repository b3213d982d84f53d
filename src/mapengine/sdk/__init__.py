"""Map SDK capability surface and an in-memory implementation."""

from mapengine.sdk.base import (
    DataHandle,
    LatLng,
    LatLngBounds,
    LatLngLike,
    MapEvents,
    MapHandle,
    MapSDK,
    MarkerHandle,
)
from mapengine.sdk.events import wait_for_event
from mapengine.sdk.fake import FakeMapSDK

__all__ = [
    "DataHandle",
    "FakeMapSDK",
    "LatLng",
    "LatLngBounds",
    "LatLngLike",
    "MapEvents",
    "MapHandle",
    "MapSDK",
    "MarkerHandle",
    "wait_for_event",
]
