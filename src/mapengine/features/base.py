"""Shared pieces of the two feature kinds (Marker, Polygon).

Both kinds expose the same capability (``MapFeature``): an id, a kind tag,
their parents, an attribute payload and a hidden/visible sub-state.  Their
construction checks and visibility machine live here so the kinds only
differ in how their SDK handle is built.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Protocol, Union, runtime_checkable

from pydantic import BaseModel, ValidationError

from mapengine.errors import FeatureValidationError, PreconditionError
from mapengine.layers.layer import DataLayer, LayerKind, check_surface
from mapengine.state_machine import State, StateMachine, Transition

if TYPE_CHECKING:
    from mapengine.features.marker import Marker
    from mapengine.features.polygon import Polygon
    from mapengine.surface.map_surface import MapSurface


class FeatureVisibility(str, Enum):
    HIDDEN = "hidden"
    VISIBLE = "visible"


SHOW = "show"
HIDE = "hide"


@runtime_checkable
class MapFeature(Protocol):
    """Capability shared by every feature kind."""

    @property
    def id(self) -> str: ...

    @property
    def kind(self) -> LayerKind: ...

    @property
    def visible(self) -> bool: ...

    def show(self) -> None: ...

    def hide(self) -> None: ...

    def delete(self) -> None: ...


Feature = Union["Marker", "Polygon"]
Attributes = Union[BaseModel, dict[str, Any]]


def create_visibility_machine(visible: bool, on_enter: Callable[[], None]) -> StateMachine:
    """hidden <-> visible machine; ``on_enter`` runs on entering either state."""
    states = [
        State(FeatureVisibility.HIDDEN.value, on_enter=on_enter),
        State(FeatureVisibility.VISIBLE.value, on_enter=on_enter),
    ]
    transitions = [
        Transition(FeatureVisibility.HIDDEN.value, FeatureVisibility.VISIBLE.value, SHOW),
        Transition(FeatureVisibility.VISIBLE.value, FeatureVisibility.HIDDEN.value, HIDE),
    ]
    initial = FeatureVisibility.VISIBLE if visible else FeatureVisibility.HIDDEN
    return StateMachine(states=states, transitions=transitions, initial_state=initial.value)


def check_parents(
    surface: "MapSurface | None",
    layer: DataLayer | None,
    kind: LayerKind,
    consumer: str,
) -> None:
    """Raise PreconditionError unless both parents exist and fit together."""
    check_surface(surface, consumer)
    if layer is None:
        raise PreconditionError(f"{consumer} requires a {kind.value} layer")
    if layer.deleted:
        raise PreconditionError(f"{consumer}: layer '{layer.name}' has been deleted")
    if layer.surface is not surface:
        raise PreconditionError(
            f"{consumer}: layer '{layer.name}' does not belong to map '{surface.id}'"
        )
    if layer.kind is not kind:
        raise PreconditionError(
            f"{consumer} cannot be placed in {layer.kind.value} layer '{layer.name}'"
        )


def validate_attributes(
    schema: type[BaseModel] | None,
    attributes: Attributes | None,
    layer: DataLayer,
) -> Attributes:
    """Validate ``attributes`` against ``schema``.

    Without a schema the payload is kept as a plain dict.

    Raises:
        FeatureValidationError: Naming the layer the feature was meant for.
    """
    if schema is None:
        if isinstance(attributes, BaseModel):
            return attributes
        return dict(attributes or {})
    if isinstance(attributes, schema):
        return attributes
    try:
        return schema.model_validate(attributes or {})
    except ValidationError as exc:
        raise FeatureValidationError(
            layer.name, layer.kind.value, exc.errors(include_url=False)
        ) from exc


def dump_attributes(attributes: Attributes) -> dict[str, Any]:
    if isinstance(attributes, BaseModel):
        return attributes.model_dump()
    return dict(attributes)


class FeatureCore:
    """Identity, parents and visibility state shared by Marker and Polygon.

    Held by composition; each kind forwards to it.
    """

    def __init__(
        self,
        owner: Any,
        feature_id: str,
        surface: "MapSurface",
        layer: DataLayer,
        attributes: Attributes,
        visible: bool,
    ) -> None:
        self.owner = owner
        self.id = feature_id
        self.surface = surface
        self.layer = layer
        self.attributes = attributes
        self.deleted = False
        self.machine = create_visibility_machine(visible, self._on_enter)

    @property
    def visibility(self) -> FeatureVisibility:
        return FeatureVisibility(self.machine.current.name)

    def send(self, event: str) -> None:
        self.machine.send(event)

    def _on_enter(self) -> None:
        # Also runs during construction, before the layer has registered us
        if self.deleted or self.layer.get_feature(self.id) is not self.owner:
            return
        self.layer._sync_feature(self.owner)
        self.surface.publish(
            "feature_visibility",
            {"layer_id": self.layer.id, "feature_id": self.id, "visibility": self.visibility.value},
        )

    def snapshot(self, **extra: Any) -> dict[str, Any]:
        return {
            "feature_id": self.id,
            "kind": self.layer.kind.value,
            "visibility": self.visibility.value,
            "rendered": (not self.deleted) and self.layer.is_rendered(self.owner),
            "attributes": dump_attributes(self.attributes),
            **extra,
        }
