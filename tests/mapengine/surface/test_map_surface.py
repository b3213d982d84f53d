"""Unit tests for MapSurface — creation preconditions, layer registry,
teardown and snapshots."""

from __future__ import annotations

import asyncio

import pytest

from mapengine.api import ApiProvider, ProviderOptions
from mapengine.errors import PreconditionError
from mapengine.features import Marker
from mapengine.layers import DataLayer
from mapengine.sdk.fake import FakeMapSDK
from mapengine.surface import MapState, MapSurface

pytestmark = pytest.mark.unit


def _run(coro):
    """Run an async coroutine synchronously on the current event loop."""
    loop = asyncio.get_event_loop()
    return loop.run_until_complete(coro)


class TestMapSurfaceCreate:

    def test_create_builds_handle_with_map_id(self, build_map, sdk):
        surface = _run(build_map("main", opts={"zoom": 7}))
        assert surface.id == "main"
        assert surface.handle is sdk.maps[0]
        assert surface.handle.map_id == "main"
        assert surface.handle.get_zoom() == 7
        assert surface.state is MapState.IDLE

    def test_create_waits_for_provider_awaitable(self, loader, sdk):
        async def scenario():
            provider_task = asyncio.ensure_future(
                ApiProvider.create(ProviderOptions(libraries=["maps"]), sdk, loader)
            )
            return await MapSurface.create("m", None, provider_task)

        surface = _run(scenario())
        assert surface.provider.is_fully_loaded

    def test_create_without_maps_library_fails_fast(self, loader, sdk):
        provider = _run(ApiProvider.create(ProviderOptions(libraries=["marker"]), sdk, loader))
        with pytest.raises(PreconditionError, match="'maps'"):
            _run(MapSurface.create("m", None, provider))
        assert sdk.maps == []

    def test_create_after_handled_load_failure_fails_fast(self, loader):
        sdk = FakeMapSDK(failing_libraries=["maps"])
        options = ProviderOptions(libraries=["maps"], on_error=lambda exc: None)
        provider = _run(ApiProvider.create(options, sdk, loader))
        with pytest.raises(PreconditionError, match="state: error"):
            _run(MapSurface.create("m", None, provider))

    def test_create_without_provider_raises(self):
        with pytest.raises(PreconditionError, match="ApiProvider"):
            _run(MapSurface.create("m", None, None))


class TestLayerRegistry:

    def test_layer_registers_itself(self, build_map):
        async def scenario():
            surface = await build_map()
            layer = await DataLayer.create_marker_layer(surface, layer_id="pins")
            return surface, layer

        surface, layer = _run(scenario())
        assert surface.get_layer("pins") is layer
        assert list(surface.layers) == ["pins"]

    def test_duplicate_layer_id_rejected(self, build_map):
        async def scenario():
            surface = await build_map()
            await DataLayer.create_polygon_layer(surface, layer_id="areas")
            await DataLayer.create_polygon_layer(surface, layer_id="areas")

        with pytest.raises(ValueError, match="already registered"):
            _run(scenario())

    def test_duplicate_polygon_layer_releases_its_data_object(self, build_map, sdk):
        async def scenario():
            surface = await build_map()
            await DataLayer.create_polygon_layer(surface, layer_id="areas")
            with pytest.raises(ValueError):
                await DataLayer.create_polygon_layer(surface, layer_id="areas")

        _run(scenario())
        assert sdk.data_layers[1].get_map() is None

    def test_layers_mapping_is_read_only(self, build_map):
        surface = _run(build_map())
        with pytest.raises(TypeError):
            surface.layers["x"] = object()

    def test_hide_and_show_layer_delegate_to_layer(self, build_map):
        async def scenario():
            surface = await build_map()
            layer = await DataLayer.create_marker_layer(surface, layer_id="pins")
            return surface, layer

        surface, layer = _run(scenario())
        surface.hide_layer("pins")
        assert layer.visible is False
        surface.show_layer("pins")
        assert layer.visible is True

    def test_hide_unknown_layer_raises(self, build_map):
        surface = _run(build_map())
        with pytest.raises(KeyError):
            surface.hide_layer("nope")
        with pytest.raises(KeyError):
            surface.show_layer("nope")

    def test_delete_layer_returns_bool(self, build_map):
        async def scenario():
            surface = await build_map()
            await DataLayer.create_marker_layer(surface, layer_id="pins")
            return surface

        surface = _run(scenario())
        assert surface.delete_layer("pins") is True
        assert surface.get_layer("pins") is None
        assert surface.delete_layer("pins") is False

    def test_delete_layer_tears_down_features_first(self, build_map):
        async def scenario():
            surface = await build_map()
            layer = await DataLayer.create_marker_layer(surface, layer_id="pins")
            markers = [
                await Marker.create(surface, layer, position=(0.0, 0.01 * i)) for i in range(3)
            ]
            return surface, layer, markers

        surface, layer, markers = _run(scenario())
        surface.delete_layer("pins")
        assert len(layer.features) == 0
        assert layer.deleted is True
        assert all(m.handle.map is None for m in markers)
        assert all(m.deleted for m in markers)

    def test_clear_layers_deletes_all(self, build_map):
        async def scenario():
            surface = await build_map()
            await DataLayer.create_marker_layer(surface, layer_id="a")
            await DataLayer.create_polygon_layer(surface, layer_id="b")
            return surface

        surface = _run(scenario())
        surface.clear_layers()
        assert len(surface.layers) == 0


class TestDestroy:

    def test_destroy_clears_layers_and_blocks_new_ones(self, build_map):
        async def scenario():
            surface = await build_map()
            await DataLayer.create_marker_layer(surface, layer_id="a")
            surface.destroy()
            assert surface.destroyed is True
            assert len(surface.layers) == 0
            await DataLayer.create_marker_layer(surface, layer_id="b")

        with pytest.raises(PreconditionError, match="destroyed"):
            _run(scenario())

    def test_destroy_drops_map_listeners(self, build_map, sdk):
        surface = _run(build_map())
        sdk.events.add_listener(surface.handle, "idle", lambda: None)
        surface.destroy()
        assert sdk.events.listener_count(surface.handle) == 0

    def test_destroy_is_idempotent(self, build_map):
        surface = _run(build_map())
        surface.destroy()
        surface.destroy()
        assert surface.destroyed is True


class TestSnapshot:

    def test_snapshot_reports_layers_and_features(self, build_map):
        async def scenario():
            surface = await build_map()
            layer = await DataLayer.create_marker_layer(surface, layer_id="pins", name="Pins")
            await Marker.create(surface, layer, position=(0.0, 0.0), feature_id="m1")
            return surface

        snap = _run(scenario()).snapshot()
        assert snap["map_id"] == "main"
        assert snap["state"] == "idle"
        assert snap["zoom"] == 10
        layer = snap["layers"][0]
        assert layer["name"] == "Pins"
        assert layer["kind"] == "marker"
        assert layer["features"][0]["feature_id"] == "m1"
        assert layer["features"][0]["rendered"] is True
