"""Marker — a single point feature attached to the map on its own."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Union

from loguru import logger
from pydantic import BaseModel

from mapengine.features.base import (
    HIDE,
    SHOW,
    Attributes,
    FeatureCore,
    FeatureVisibility,
    check_parents,
    validate_attributes,
)
from mapengine.ids import use_id
from mapengine.layers.layer import DataLayer, LayerKind
from mapengine.sdk.base import LatLng, LatLngLike, MarkerHandle
from mapengine.utils import resolve

if TYPE_CHECKING:
    from mapengine.surface.map_surface import MapSurface


class Marker:
    """A point feature in a marker layer."""

    kind = LayerKind.MARKER

    def __init__(
        self,
        feature_id: str,
        surface: "MapSurface",
        layer: DataLayer,
        handle: MarkerHandle,
        attributes: Attributes,
        *,
        visible: bool = True,
    ) -> None:
        self._handle = handle
        self._core = FeatureCore(self, feature_id, surface, layer, attributes, visible)

    @classmethod
    async def create(
        cls,
        surface: Union["MapSurface", Awaitable["MapSurface"]],
        layer: Union[DataLayer, Awaitable[DataLayer]],
        *,
        position: LatLngLike,
        feature_id: str | None = None,
        opts: dict[str, Any] | None = None,
        attributes: Attributes | None = None,
        attribute_schema: type[BaseModel] | None = None,
        visible: bool = True,
    ) -> "Marker":
        """Build a marker once both parents exist and add it to ``layer``.

        Raises:
            PreconditionError: If a parent is missing/unusable or the
                'marker' library is not loaded.
            FeatureValidationError: If ``attributes`` fail the schema.
        """
        surface, layer = await asyncio.gather(resolve(surface), resolve(layer))
        feature_id = feature_id or use_id("marker")
        consumer = f"Marker '{feature_id}'"
        check_parents(surface, layer, LayerKind.MARKER, consumer)
        surface.provider.require("marker", consumer)
        attrs = validate_attributes(attribute_schema or layer.attribute_schema, attributes, layer)

        handle = surface.sdk.create_marker(
            {**(opts or {}), "position": LatLng.coerce(position), "map": surface.handle}
        )
        marker = cls(feature_id, surface, layer, handle, attrs, visible=visible)
        try:
            layer.add_feature(marker)
        except ValueError:
            handle.map = None
            raise
        logger.debug(f"Marker created: {feature_id} in layer {layer.id}")
        return marker

    @property
    def id(self) -> str:
        return self._core.id

    @property
    def surface(self) -> "MapSurface":
        return self._core.surface

    @property
    def layer(self) -> DataLayer:
        return self._core.layer

    @property
    def handle(self) -> MarkerHandle:
        return self._handle

    @property
    def attributes(self) -> Attributes:
        return self._core.attributes

    @property
    def position(self) -> LatLng | None:
        return getattr(self._handle, "position", None)

    @property
    def visibility(self) -> FeatureVisibility:
        return self._core.visibility

    @property
    def visible(self) -> bool:
        return self._core.visibility is FeatureVisibility.VISIBLE

    @property
    def rendered(self) -> bool:
        return not self._core.deleted and self.layer.is_rendered(self)

    @property
    def deleted(self) -> bool:
        return self._core.deleted

    def show(self) -> None:
        self._core.send(SHOW)

    def hide(self) -> None:
        self._core.send(HIDE)

    def delete(self) -> None:
        """Detach from the map and remove from the layer."""
        if self._core.deleted:
            return
        if not self.layer.delete_feature(self.id):
            self._on_deleted()

    def _on_deleted(self) -> None:
        self._handle.map = None
        self._core.deleted = True

    def snapshot(self) -> dict[str, Any]:
        position = self.position
        return self._core.snapshot(position=position.to_dict() if position else None)
