"""mapengine — map composition and smooth zoom/pan engine.

Hierarchy (parents must exist before children):

    ApiProvider -> MapSurface -> DataLayer (marker | polygon) -> Marker | Polygon

The external map SDK is reached only through ``mapengine.sdk`` protocols;
``mapengine.sdk.fake.FakeMapSDK`` runs the engine headless.
"""

from mapengine.api import ApiProvider, LibraryLoader, LoaderOptions, LoadState, ProviderOptions
from mapengine.comms import EventBus
from mapengine.context import ContextKey, ContextRegistry, ContextScope
from mapengine.errors import (
    FeatureValidationError,
    LibraryLoadError,
    MapEngineError,
    MissingDependencyError,
    PreconditionError,
)
from mapengine.features import Feature, FeatureVisibility, Marker, Polygon
from mapengine.layers import DataLayer, LayerKind, PolygonStyleSet, PolygonStyling
from mapengine.sdk import LatLng, LatLngBounds
from mapengine.surface import MapState, MapSurface

__version__ = "0.1.0"

__all__ = [
    "ApiProvider",
    "ContextKey",
    "ContextRegistry",
    "ContextScope",
    "DataLayer",
    "EventBus",
    "Feature",
    "FeatureValidationError",
    "FeatureVisibility",
    "LatLng",
    "LatLngBounds",
    "LayerKind",
    "LibraryLoadError",
    "LibraryLoader",
    "LoadState",
    "LoaderOptions",
    "MapEngineError",
    "MapState",
    "MapSurface",
    "Marker",
    "MissingDependencyError",
    "Polygon",
    "PolygonStyleSet",
    "PolygonStyling",
    "PreconditionError",
    "ProviderOptions",
]
