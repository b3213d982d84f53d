"""MapSurface — one renderable map, its data layers and its animation state.

Lifecycle:
  ApiProvider (maps library loaded) -> MapSurface.create() -> layers -> features

Teardown runs the other way: ``delete_layer`` tears the layer (and all of
its features) down before dropping it from the registry, and ``destroy``
clears every layer.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Awaitable, Mapping, Union

from loguru import logger

from mapengine.config import settings
from mapengine.errors import PreconditionError
from mapengine.sdk.base import LatLngLike, MapEvents, MapHandle, MapSDK
from mapengine.state_machine import StateMachine
from mapengine.surface.animation import SmoothZoomAnimator
from mapengine.surface.states import MapState, create_map_state_machine
from mapengine.utils import resolve

if TYPE_CHECKING:
    from mapengine.api.provider import ApiProvider
    from mapengine.comms.event_bus import EventBus
    from mapengine.layers.layer import DataLayer


class MapSurface:
    """Owns a map handle, a registry of DataLayers and the zoom/pan FSM."""

    def __init__(
        self,
        map_id: str,
        container: Any,
        provider: "ApiProvider",
        handle: MapHandle,
        *,
        event_bus: "EventBus | None" = None,
        step_delay: float | None = None,
        min_zoom: int | None = None,
        max_zoom: int | None = None,
    ) -> None:
        self._id = map_id
        self._container = container
        self._provider = provider
        self._handle = handle
        self._event_bus = event_bus
        self._layers: dict[str, "DataLayer"] = {}
        self._destroyed = False

        self._state = create_map_state_machine()
        self._state.add_listener(self._on_state_change)
        self._animator = SmoothZoomAnimator(
            handle,
            provider.sdk.events,
            self._state,
            step_delay=settings.zoom_step_delay if step_delay is None else step_delay,
            min_zoom=settings.min_zoom if min_zoom is None else min_zoom,
            max_zoom=settings.max_zoom if max_zoom is None else max_zoom,
        )

    @classmethod
    async def create(
        cls,
        map_id: str,
        container: Any,
        provider: Union["ApiProvider", Awaitable["ApiProvider"]],
        opts: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> "MapSurface":
        """Wait for ``provider`` and build the map once 'maps' is loaded.

        Raises:
            PreconditionError: If there is no provider or 'maps' is not loaded.
        """
        provider = await resolve(provider)
        if provider is None:
            raise PreconditionError(f"MapSurface '{map_id}' requires an ApiProvider")
        provider.require("maps", f"MapSurface '{map_id}'")
        handle = provider.sdk.create_map(container, {**(opts or {}), "map_id": map_id})
        surface = cls(map_id, container, provider, handle, **kwargs)
        logger.info(f"Map created: {map_id} (zoom={handle.get_zoom()})")
        return surface

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def container(self) -> Any:
        return self._container

    @property
    def handle(self) -> MapHandle:
        return self._handle

    @property
    def provider(self) -> "ApiProvider":
        return self._provider

    @property
    def sdk(self) -> MapSDK:
        return self._provider.sdk

    @property
    def events(self) -> MapEvents:
        return self._provider.sdk.events

    @property
    def event_bus(self) -> "EventBus | None":
        return self._event_bus

    @property
    def state(self) -> MapState:
        return MapState(self._state.current.name)

    @property
    def state_machine(self) -> StateMachine:
        return self._state

    @property
    def animator(self) -> SmoothZoomAnimator:
        return self._animator

    @property
    def layers(self) -> Mapping[str, "DataLayer"]:
        return MappingProxyType(self._layers)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    # ------------------------------------------------------------------
    # Layer registry
    # ------------------------------------------------------------------

    def add_layer(self, layer: "DataLayer") -> str:
        """Register ``layer``.

        Raises:
            PreconditionError: If the map has been destroyed.
            ValueError: If a layer with the same id is already registered.
        """
        if self._destroyed:
            raise PreconditionError(f"Map '{self._id}' has been destroyed")
        if layer.id in self._layers:
            raise ValueError(f"Layer '{layer.id}' already registered on map '{self._id}'")
        self._layers[layer.id] = layer
        self.publish("layer_added", {"layer_id": layer.id, "kind": layer.kind.value})
        return layer.id

    def get_layer(self, layer_id: str) -> "DataLayer | None":
        return self._layers.get(layer_id)

    def delete_layer(self, layer_id: str) -> bool:
        """Tear down a layer and its features, then unregister it.

        Returns:
            True if the layer was deleted, False if it didn't exist.
        """
        layer = self._layers.get(layer_id)
        if layer is None:
            return False
        layer._teardown()
        del self._layers[layer_id]
        self.publish("layer_deleted", {"layer_id": layer_id})
        logger.info(f"Layer deleted: {layer_id} from map {self._id}")
        return True

    def hide_layer(self, layer_id: str) -> None:
        """Raises KeyError if the layer_id is not found."""
        self._require_layer(layer_id).visible = False

    def show_layer(self, layer_id: str) -> None:
        """Raises KeyError if the layer_id is not found."""
        self._require_layer(layer_id).visible = True

    def clear_layers(self) -> None:
        for layer_id in list(self._layers):
            self.delete_layer(layer_id)

    def destroy(self) -> None:
        """Delete every layer and drop SDK listeners on the map handle."""
        if self._destroyed:
            return
        self.clear_layers()
        self.events.clear_instance_listeners(self._handle)
        self._destroyed = True
        logger.info(f"Map destroyed: {self._id}")

    def _require_layer(self, layer_id: str) -> "DataLayer":
        layer = self._layers.get(layer_id)
        if layer is None:
            raise KeyError(f"Layer not found: {layer_id}")
        return layer

    # ------------------------------------------------------------------
    # Viewport and animation
    # ------------------------------------------------------------------

    def contains(self, point: LatLngLike) -> bool:
        return self._animator.contains(point)

    async def smooth_zoom(self, target_zoom: int, location: LatLngLike | None = None) -> None:
        """Animate to ``target_zoom``, first bringing ``location`` into view
        and panning to it when given.  Ends in MapState.IDLE."""
        await self._animator.smooth_zoom(target_zoom, location)

    async def zoom_to(self, target_zoom: int) -> int:
        """Step-wise zoom without panning; returns steps taken.  Ends in
        MapState.IDLE."""
        steps = await self._animator.zoom_to(target_zoom)
        self._animator.settle()
        return steps

    # ------------------------------------------------------------------
    # Notification
    # ------------------------------------------------------------------

    def publish(self, event_type: str, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event_type, {"map_id": self._id, **data})

    def _on_state_change(self, previous: str, current: str, event: str) -> None:
        self.publish("map_state", {"previous": previous, "state": current, "event": event})

    def snapshot(self) -> dict[str, Any]:
        """Plain-dict view of the map, its layers and features."""
        return {
            "map_id": self._id,
            "state": self.state.value,
            "zoom": self._handle.get_zoom(),
            "destroyed": self._destroyed,
            "layers": [layer.snapshot() for layer in self._layers.values()],
        }
