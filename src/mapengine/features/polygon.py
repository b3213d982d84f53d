"""Polygon — an area feature drawn through its layer's shared data object."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
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
    dump_attributes,
    validate_attributes,
)
from mapengine.ids import use_id
from mapengine.layers.layer import DataLayer, LayerKind
from mapengine.sdk.base import LatLng, LatLngLike
from mapengine.utils import resolve

if TYPE_CHECKING:
    from mapengine.surface.map_surface import MapSurface

Ring = Sequence[LatLngLike]


def _is_point(value: Any) -> bool:
    if isinstance(value, (LatLng, Mapping)):
        return True
    return (
        isinstance(value, Sequence)
        and len(value) == 2
        and all(isinstance(v, (int, float)) for v in value)
    )


def normalize_geometry(geometry: Union[Ring, Sequence[Ring]]) -> list[list[LatLng]]:
    """Coerce a single ring or a list of rings into lists of LatLng.

    Raises:
        ValueError: If there are no rings or a ring has fewer than 3 points.
    """
    if not geometry:
        raise ValueError("Polygon geometry needs at least one ring")
    rings = [geometry] if _is_point(geometry[0]) else list(geometry)
    normalized = []
    for index, ring in enumerate(rings):
        points = [LatLng.coerce(p) for p in ring]
        if len(points) < 3:
            raise ValueError(f"Polygon ring {index} has {len(points)} points; at least 3 required")
        normalized.append(points)
    return normalized


class Polygon:
    """An area feature in a polygon layer."""

    kind = LayerKind.POLYGON

    def __init__(
        self,
        feature_id: str,
        surface: "MapSurface",
        layer: DataLayer,
        handle: Any,
        attributes: Attributes,
        *,
        geometry: list[list[LatLng]] | None = None,
        visible: bool = True,
    ) -> None:
        self._handle = handle
        self._geometry = geometry or []
        self._core = FeatureCore(self, feature_id, surface, layer, attributes, visible)

    @classmethod
    async def create(
        cls,
        surface: Union["MapSurface", Awaitable["MapSurface"]],
        layer: Union[DataLayer, Awaitable[DataLayer]],
        *,
        geometry: Union[Ring, Sequence[Ring]],
        feature_id: str | None = None,
        attributes: Attributes | None = None,
        attribute_schema: type[BaseModel] | None = None,
        visible: bool = True,
    ) -> "Polygon":
        """Build a polygon once both parents exist and add it to ``layer``.

        Raises:
            PreconditionError: If a parent is missing/unusable or the
                'maps' library is not loaded.
            FeatureValidationError: If ``attributes`` fail the schema.
        """
        surface, layer = await asyncio.gather(resolve(surface), resolve(layer))
        feature_id = feature_id or use_id("polygon")
        consumer = f"Polygon '{feature_id}'"
        check_parents(surface, layer, LayerKind.POLYGON, consumer)
        surface.provider.require("maps", consumer)
        attrs = validate_attributes(attribute_schema or layer.attribute_schema, attributes, layer)
        rings = normalize_geometry(geometry)

        handle = surface.sdk.create_data_feature(feature_id, rings, dump_attributes(attrs))
        polygon = cls(feature_id, surface, layer, handle, attrs, geometry=rings, visible=visible)
        layer.add_feature(polygon)
        logger.debug(f"Polygon created: {feature_id} in layer {layer.id}")
        return polygon

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
    def handle(self) -> Any:
        return self._handle

    @property
    def geometry(self) -> list[list[LatLng]]:
        return self._geometry

    @property
    def attributes(self) -> Attributes:
        return self._core.attributes

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
        """Remove from the shared data object and from the layer."""
        if self._core.deleted:
            return
        self.layer.delete_feature(self.id)
        self._core.deleted = True

    def _on_deleted(self) -> None:
        self._core.deleted = True

    def snapshot(self) -> dict[str, Any]:
        return self._core.snapshot(rings=len(self.geometry))
