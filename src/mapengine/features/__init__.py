"""Map features: markers and polygons with their own visibility state."""

from mapengine.features.base import Feature, FeatureVisibility, MapFeature
from mapengine.features.marker import Marker
from mapengine.features.polygon import Polygon, normalize_geometry

__all__ = [
    "Feature",
    "FeatureVisibility",
    "MapFeature",
    "Marker",
    "Polygon",
    "normalize_geometry",
]
