"""DataLayer — a named, filterable collection of one feature kind.

A layer is tagged with a LayerKind and composes the matching renderer
(MarkerRenderer or PolygonRenderer); everything else is shared.

Visibility cascade:
    A feature is drawn iff the layer is visible, the layer filter (if any)
    admits it, and the feature's own visibility is VISIBLE.  Hiding the
    layer never touches per-feature visibility, so showing it again restores
    each feature's own state, re-filtered.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional, Union

from loguru import logger
from pydantic import BaseModel

from mapengine.errors import PreconditionError
from mapengine.ids import use_id
from mapengine.layers.renderers import MarkerRenderer, PolygonRenderer
from mapengine.layers.styling import DEFAULT_POLYGON_STYLES, PolygonStyleSet, StylingLike
from mapengine.utils import resolve

if TYPE_CHECKING:
    from mapengine.features.base import Feature
    from mapengine.surface.map_surface import MapSurface


class LayerKind(str, Enum):
    MARKER = "marker"
    POLYGON = "polygon"


FeaturePredicate = Callable[["Feature"], bool]

_RENDERERS = {
    LayerKind.MARKER: MarkerRenderer,
    LayerKind.POLYGON: PolygonRenderer,
}

# SDK library each layer kind needs before it can be built
REQUIRED_LIBRARY = {
    LayerKind.MARKER: "marker",
    LayerKind.POLYGON: "maps",
}


def check_surface(surface: "MapSurface | None", consumer: str) -> None:
    """Raise PreconditionError unless ``surface`` exists and is live."""
    if surface is None:
        raise PreconditionError(f"{consumer} requires a MapSurface")
    if surface.destroyed:
        raise PreconditionError(f"{consumer}: map '{surface.id}' has been destroyed")


class DataLayer:
    """Registry of features of one kind, with layer-level visibility and filter."""

    def __init__(
        self,
        layer_id: str,
        name: str,
        kind: LayerKind,
        surface: "MapSurface",
        *,
        visible: bool = True,
        filter: FeaturePredicate | None = None,
        attribute_schema: type[BaseModel] | None = None,
        renderer_options: dict[str, Any] | None = None,
    ) -> None:
        self._id = layer_id
        self.name = name
        self._kind = LayerKind(kind)
        self._surface = surface
        self._visible = visible
        self._filter = filter
        self._attribute_schema = attribute_schema
        self._features: dict[str, "Feature"] = {}
        self._deleted = False
        self._renderer = _RENDERERS[self._kind](self, **(renderer_options or {}))
        if not visible:
            self._renderer.hide_all(())

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    async def create_marker_layer(
        cls,
        surface: Union["MapSurface", Awaitable["MapSurface"]],
        *,
        layer_id: str | None = None,
        name: str | None = None,
        visible: bool = True,
        filter: FeaturePredicate | None = None,
        attribute_schema: type[BaseModel] | None = None,
    ) -> "DataLayer":
        """Create a marker layer once ``surface`` exists and 'marker' is loaded."""
        return await cls._create(
            LayerKind.MARKER,
            surface,
            layer_id=layer_id,
            name=name,
            visible=visible,
            filter=filter,
            attribute_schema=attribute_schema,
            renderer_options={},
        )

    @classmethod
    async def create_polygon_layer(
        cls,
        surface: Union["MapSurface", Awaitable["MapSurface"]],
        *,
        layer_id: str | None = None,
        name: str | None = None,
        visible: bool = True,
        filter: FeaturePredicate | None = None,
        attribute_schema: type[BaseModel] | None = None,
        opts: dict[str, Any] | None = None,
        styling: PolygonStyleSet | None = None,
        default_styling: StylingLike | None = None,
        hover_styling: StylingLike | None = None,
        click_styling: StylingLike | None = None,
    ) -> "DataLayer":
        """Create a polygon layer backed by one shared SDK data object.

        ``styling`` replaces the default style set; the ``*_styling``
        arguments override individual properties of a variant on top of it.
        """
        styles = (styling or DEFAULT_POLYGON_STYLES).merged(
            default=default_styling, hover=hover_styling, click=click_styling
        )
        return await cls._create(
            LayerKind.POLYGON,
            surface,
            layer_id=layer_id,
            name=name,
            visible=visible,
            filter=filter,
            attribute_schema=attribute_schema,
            renderer_options={"styling": styles, "opts": opts},
        )

    @classmethod
    async def _create(
        cls,
        kind: LayerKind,
        surface: Union["MapSurface", Awaitable["MapSurface"]],
        *,
        layer_id: Optional[str],
        name: Optional[str],
        visible: bool,
        filter: FeaturePredicate | None,
        attribute_schema: type[BaseModel] | None,
        renderer_options: dict[str, Any],
    ) -> "DataLayer":
        surface = await resolve(surface)
        layer_id = layer_id or use_id(f"{kind.value}-layer")
        consumer = f"{kind.value.capitalize()} layer '{layer_id}'"
        check_surface(surface, consumer)
        surface.provider.require(REQUIRED_LIBRARY[kind], consumer)

        layer = cls(
            layer_id,
            name or layer_id,
            kind,
            surface,
            visible=visible,
            filter=filter,
            attribute_schema=attribute_schema,
            renderer_options=renderer_options,
        )
        try:
            surface.add_layer(layer)
        except (ValueError, PreconditionError):
            layer._renderer.teardown()
            raise
        logger.info(f"Layer created: {layer_id} ({kind.value}) on map {surface.id}")
        return layer

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def kind(self) -> LayerKind:
        return self._kind

    @property
    def surface(self) -> "MapSurface":
        return self._surface

    @property
    def features(self) -> Mapping[str, "Feature"]:
        return MappingProxyType(self._features)

    @property
    def filter(self) -> FeaturePredicate | None:
        return self._filter

    @property
    def attribute_schema(self) -> type[BaseModel] | None:
        return self._attribute_schema

    @property
    def renderer(self) -> Union[MarkerRenderer, PolygonRenderer]:
        return self._renderer

    @property
    def deleted(self) -> bool:
        return self._deleted

    # ------------------------------------------------------------------
    # Visibility and filtering
    # ------------------------------------------------------------------

    @property
    def visible(self) -> bool:
        return self._visible

    @visible.setter
    def visible(self, value: bool) -> None:
        self._visible = bool(value)
        features = list(self._features.values())
        if self._visible:
            self._renderer.show_all(features)
            if self._filter is not None:
                self._renderer.apply_filter(features, self._filter)
        else:
            self._renderer.hide_all(features)
        self._surface.publish("layer_visibility", {"layer_id": self._id, "visible": self._visible})

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def set_filter(self, predicate: FeaturePredicate | None) -> None:
        """Store ``predicate`` and, while visible, re-evaluate every feature.

        Passing None removes the filter and restores every feature's own
        visibility.
        """
        self._filter = predicate
        features = list(self._features.values())
        if self._visible and predicate is not None:
            self._renderer.apply_filter(features, predicate)
        elif self._visible:
            self._renderer.show_all(features)
        self._surface.publish("layer_filter", {"layer_id": self._id, "active": predicate is not None})

    def admits(self, feature: "Feature") -> bool:
        """True if layer visibility and filter allow ``feature`` to be drawn."""
        return self._visible and (self._filter is None or bool(self._filter(feature)))

    def is_rendered(self, feature: "Feature") -> bool:
        return feature.id in self._features and self._renderer.is_attached(feature)

    # ------------------------------------------------------------------
    # Feature registry
    # ------------------------------------------------------------------

    def add_feature(self, feature: "Feature") -> str:
        """Register ``feature`` and apply this layer's visibility to it.

        Raises:
            PreconditionError: If the layer has been deleted.
            ValueError: On a kind mismatch or duplicate feature id.
        """
        if self._deleted:
            raise PreconditionError(f"Layer '{self.name}' has been deleted")
        if feature.kind is not self._kind:
            raise ValueError(
                f"Cannot add {feature.kind.value} '{feature.id}' to {self._kind.value} layer '{self.name}'"
            )
        if feature.id in self._features:
            raise ValueError(f"Feature '{feature.id}' already exists in layer '{self.name}'")
        self._features[feature.id] = feature
        self._renderer.register(feature)
        self._sync_feature(feature)
        self._surface.publish("feature_added", {"layer_id": self._id, "feature_id": feature.id})
        return feature.id

    def get_feature(self, feature_id: str) -> "Feature | None":
        return self._features.get(feature_id)

    def delete_feature(self, feature_id: str) -> bool:
        """Unregister a feature and detach it from the map.

        Returns:
            True if the feature was deleted, False if it didn't exist.
        """
        feature = self._features.pop(feature_id, None)
        if feature is None:
            return False
        self._renderer.unregister(feature)
        feature._on_deleted()
        self._surface.publish("feature_deleted", {"layer_id": self._id, "feature_id": feature_id})
        return True

    def clear_features(self) -> None:
        for feature_id in list(self._features):
            self.delete_feature(feature_id)

    def delete(self) -> None:
        """Delete every feature, then remove this layer from its map."""
        if self._deleted:
            return
        if self._surface.get_layer(self._id) is self:
            self._surface.delete_layer(self._id)
        else:
            self._teardown()

    def _teardown(self) -> None:
        self.clear_features()
        self._renderer.teardown()
        self._deleted = True

    def _sync_feature(self, feature: "Feature") -> None:
        """Attach or detach one feature from its own state plus the layer gate."""
        if self._features.get(feature.id) is not feature:
            return
        if feature.visible and self.admits(feature):
            self._renderer.attach(feature)
        else:
            self._renderer.detach(feature)

    def snapshot(self) -> dict[str, Any]:
        return {
            "layer_id": self._id,
            "name": self.name,
            "kind": self._kind.value,
            "visible": self._visible,
            "filtered": self._filter is not None,
            "features": [feature.snapshot() for feature in self._features.values()],
        }
