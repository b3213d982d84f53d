"""Kind-specific rendering strategies for DataLayer.

MarkerRenderer attaches each marker to the map individually.
PolygonRenderer owns one grouped data object for the whole layer; the layer
is hidden by detaching that object, and single polygons are hidden or shown
by overriding their ``visible`` style on it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable

from mapengine.layers.styling import PolygonStyleSet, StyleVariant

if TYPE_CHECKING:
    from mapengine.features.base import Feature
    from mapengine.layers.layer import DataLayer

Predicate = Callable[["Feature"], bool]


class MarkerRenderer:
    """Toggles each marker's map attachment."""

    def __init__(self, layer: "DataLayer") -> None:
        self._layer = layer

    def register(self, feature: "Feature") -> None:
        """Markers need no shared render object; each handle is attached on its own."""

    def unregister(self, feature: "Feature") -> None:
        self.detach(feature)

    def attach(self, feature: "Feature") -> None:
        feature.handle.map = self._layer.surface.handle

    def detach(self, feature: "Feature") -> None:
        feature.handle.map = None

    def is_attached(self, feature: "Feature") -> bool:
        return feature.handle.map is not None

    def show_all(self, features: Iterable["Feature"]) -> None:
        for feature in features:
            if feature.visible:
                self.attach(feature)
            else:
                self.detach(feature)

    def hide_all(self, features: Iterable["Feature"]) -> None:
        for feature in features:
            self.detach(feature)

    def apply_filter(self, features: Iterable["Feature"], predicate: Predicate) -> None:
        for feature in features:
            if feature.visible and predicate(feature):
                self.attach(feature)
            else:
                self.detach(feature)

    def teardown(self) -> None:
        """Markers need no shared render object; nothing to release."""


class PolygonRenderer:
    """Drives a shared data object through style overrides."""

    def __init__(
        self,
        layer: "DataLayer",
        styling: PolygonStyleSet,
        opts: dict[str, Any] | None = None,
    ) -> None:
        self._layer = layer
        self._styling = styling
        self._shown: dict[str, bool] = {}
        surface = layer.surface
        self._data = surface.sdk.create_data({**(opts or {}), "map": surface.handle})
        self._data.set_style(styling.default.to_style())
        self._init_event_listeners()

    @property
    def data(self) -> Any:
        return self._data

    @property
    def styling(self) -> PolygonStyleSet:
        return self._styling

    def register(self, feature: "Feature") -> None:
        self._data.add(feature.handle)

    def unregister(self, feature: "Feature") -> None:
        self._shown.pop(feature.id, None)
        self._data.remove(feature.handle)

    def attach(self, feature: "Feature") -> None:
        self._set_visible(feature, True)

    def detach(self, feature: "Feature") -> None:
        self._set_visible(feature, False)

    def is_attached(self, feature: "Feature") -> bool:
        return self._data.get_map() is not None and self._shown.get(feature.id, False)

    def show_all(self, features: Iterable["Feature"]) -> None:
        self._data.set_map(self._layer.surface.handle)
        for feature in features:
            self._set_visible(feature, feature.visible)

    def hide_all(self, features: Iterable["Feature"]) -> None:
        self._data.set_map(None)

    def apply_filter(self, features: Iterable["Feature"], predicate: Predicate) -> None:
        for feature in features:
            self._set_visible(feature, feature.visible and predicate(feature))

    def teardown(self) -> None:
        self._layer.surface.events.clear_instance_listeners(self._data)
        self._data.set_map(None)

    def _set_visible(self, feature: "Feature", visible: bool) -> None:
        self._shown[feature.id] = visible
        self._data.override_style(feature.handle, {"visible": visible})

    # ------------------------------------------------------------------
    # Hover / click highlighting
    # ------------------------------------------------------------------

    def _init_event_listeners(self) -> None:
        events = self._layer.surface.events
        events.add_listener(self._data, "click", self._on_click)
        events.add_listener(self._data, "mouseover", self._on_mouseover)
        events.add_listener(self._data, "mouseout", self._on_mouseout)

    def _on_click(self, event: Any) -> None:
        self.highlight(event.feature, StyleVariant.CLICK)

    def _on_mouseover(self, event: Any) -> None:
        self.highlight(event.feature, StyleVariant.HOVER)

    def _on_mouseout(self, *_: Any) -> None:
        self.revert()

    def highlight(self, handle: Any, variant: StyleVariant) -> None:
        """Clear other highlights and apply ``variant`` to one polygon."""
        self.revert()
        self._data.override_style(handle, self._styling.variant(variant).to_style())

    def revert(self) -> None:
        """Drop highlight overrides, keeping filtered-out polygons hidden."""
        self._data.revert_style()
        for feature in self._layer.features.values():
            if not self._shown.get(feature.id, True):
                self._data.override_style(feature.handle, {"visible": False})
