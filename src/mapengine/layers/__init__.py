"""Data layers: marker and polygon collections with visibility cascade."""

from mapengine.layers.layer import REQUIRED_LIBRARY, DataLayer, LayerKind
from mapengine.layers.renderers import MarkerRenderer, PolygonRenderer
from mapengine.layers.styling import (
    DEFAULT_POLYGON_STYLES,
    PolygonStyleSet,
    PolygonStyling,
    StyleVariant,
)

__all__ = [
    "DEFAULT_POLYGON_STYLES",
    "DataLayer",
    "LayerKind",
    "MarkerRenderer",
    "PolygonRenderer",
    "PolygonStyleSet",
    "PolygonStyling",
    "REQUIRED_LIBRARY",
    "StyleVariant",
]
