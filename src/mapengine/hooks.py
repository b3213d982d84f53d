"""Composition helpers that wire components through a ContextScope.

Each ``use_*`` function looks up its parents synchronously (so a missing
parent fails immediately with MissingDependencyError), schedules the async
factory as a task that waits for those parents, provides the task in
``scope`` and returns it.  Must be called from inside a running event loop.

    async def build(sdk):
        root = ContextScope()
        use_api_provider(root, ProviderOptions(libraries=["maps", "marker"]), sdk)
        map_scope = root.child()
        use_map(map_scope, "main", container=None)
        layer_scope = map_scope.child()
        use_marker_layer(layer_scope, name="Listings")
        marker = await use_marker(layer_scope.child(), position=(43.65, -79.38))
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

from mapengine.api.loader import LibraryLoader
from mapengine.api.provider import ApiProvider, ProviderOptions
from mapengine.context import ContextKey, ContextScope
from mapengine.features.marker import Marker
from mapengine.features.polygon import Polygon
from mapengine.layers.layer import DataLayer
from mapengine.sdk.base import MapSDK
from mapengine.surface.map_surface import MapSurface


def _spawn(coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
    return asyncio.get_running_loop().create_task(coro)


def use_api_provider(
    scope: ContextScope,
    options: ProviderOptions,
    sdk: MapSDK,
    loader: LibraryLoader | None = None,
) -> asyncio.Task:
    task = _spawn(ApiProvider.create(options, sdk, loader))
    return scope.provide(ContextKey.API_PROVIDER, task)


def use_map(
    scope: ContextScope,
    map_id: str,
    container: Any,
    opts: dict[str, Any] | None = None,
    **kwargs: Any,
) -> asyncio.Task:
    provider = scope.lookup(ContextKey.API_PROVIDER)
    task = _spawn(MapSurface.create(map_id, container, provider, opts, **kwargs))
    return scope.provide(ContextKey.MAP, task)


def use_marker_layer(scope: ContextScope, **props: Any) -> asyncio.Task:
    surface = scope.lookup(ContextKey.MAP)
    task = _spawn(DataLayer.create_marker_layer(surface, **props))
    return scope.provide(ContextKey.MARKER_LAYER, task)


def use_polygon_layer(scope: ContextScope, **props: Any) -> asyncio.Task:
    surface = scope.lookup(ContextKey.MAP)
    task = _spawn(DataLayer.create_polygon_layer(surface, **props))
    return scope.provide(ContextKey.POLYGON_LAYER, task)


def use_marker(scope: ContextScope, **props: Any) -> asyncio.Task:
    surface = scope.lookup(ContextKey.MAP)
    layer = scope.lookup(ContextKey.MARKER_LAYER)
    task = _spawn(Marker.create(surface, layer, **props))
    return scope.provide(ContextKey.MARKER, task)


def use_polygon(scope: ContextScope, **props: Any) -> asyncio.Task:
    surface = scope.lookup(ContextKey.MAP)
    layer = scope.lookup(ContextKey.POLYGON_LAYER)
    task = _spawn(Polygon.create(surface, layer, **props))
    return scope.provide(ContextKey.POLYGON, task)
