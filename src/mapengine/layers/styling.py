"""Polygon layer styling: default, hover and click variants.

Each variant is a partial set of visual properties; anything left unset
falls through to the SDK's own default.  Styles are handed to the SDK in its
camelCase vocabulary (fillColor, zIndex, ...).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class StyleVariant(str, Enum):
    DEFAULT = "default"
    HOVER = "hover"
    CLICK = "click"


class PolygonStyling(BaseModel):
    """Recognized polygon style properties, all optional."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    fill_color: Optional[str] = Field(default=None, alias="fillColor")
    fill_opacity: Optional[float] = Field(default=None, alias="fillOpacity", ge=0.0, le=1.0)
    stroke_color: Optional[str] = Field(default=None, alias="strokeColor")
    stroke_weight: Optional[float] = Field(default=None, alias="strokeWeight", ge=0.0)
    stroke_opacity: Optional[float] = Field(default=None, alias="strokeOpacity", ge=0.0, le=1.0)
    z_index: Optional[int] = Field(default=None, alias="zIndex")
    clickable: Optional[bool] = None

    def to_style(self) -> dict[str, Any]:
        """SDK style dict containing only the properties that are set."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def merged(self, overrides: "StylingLike") -> "PolygonStyling":
        """Copy of this styling with every property set in ``overrides`` applied."""
        overrides = _coerce(overrides)
        return self.model_copy(update=overrides.model_dump(exclude_none=True))


StylingLike = Union[PolygonStyling, dict[str, Any]]


def _coerce(value: StylingLike) -> PolygonStyling:
    if isinstance(value, PolygonStyling):
        return value
    return PolygonStyling.model_validate(value)


class PolygonStyleSet(BaseModel):
    """The three style variants a polygon layer switches between."""

    model_config = ConfigDict(frozen=True)

    default: PolygonStyling = Field(default_factory=PolygonStyling)
    hover: PolygonStyling = Field(default_factory=PolygonStyling)
    click: PolygonStyling = Field(default_factory=PolygonStyling)

    def variant(self, variant: StyleVariant) -> PolygonStyling:
        return getattr(self, StyleVariant(variant).value)

    def merged(
        self,
        default: StylingLike | None = None,
        hover: StylingLike | None = None,
        click: StylingLike | None = None,
    ) -> "PolygonStyleSet":
        """Override any subset of properties in any variant."""
        return PolygonStyleSet(
            default=self.default.merged(default) if default is not None else self.default,
            hover=self.hover.merged(hover) if hover is not None else self.hover,
            click=self.click.merged(click) if click is not None else self.click,
        )


DEFAULT_POLYGON_STYLES = PolygonStyleSet(
    default=PolygonStyling(
        fill_color="#FF0000",
        fill_opacity=0.5,
        stroke_color="#FF0000",
        stroke_weight=2,
        stroke_opacity=1,
    ),
    hover=PolygonStyling(stroke_weight=4, z_index=10),
    click=PolygonStyling(
        fill_color="#07EDE5",
        fill_opacity=0.5,
        stroke_color="#07EDE5",
        stroke_weight=4,
        stroke_opacity=1,
        z_index=10,
    ),
)
