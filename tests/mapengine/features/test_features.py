"""Unit tests for Marker and Polygon — construction preconditions,
attribute validation, per-feature visibility and deletion."""

from __future__ import annotations

import asyncio

import pytest
from pydantic import BaseModel

from mapengine.errors import FeatureValidationError, PreconditionError
from mapengine.features import FeatureVisibility, MapFeature, Marker, Polygon, normalize_geometry
from mapengine.layers import DataLayer
from mapengine.sdk import LatLng

pytestmark = pytest.mark.unit


def _run(coro):
    """Run an async coroutine synchronously on the current event loop."""
    loop = asyncio.get_event_loop()
    return loop.run_until_complete(coro)


class Listing(BaseModel):
    mls: str
    price: int


TRIANGLE = [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0)]


@pytest.fixture
def layers(build_map):
    async def scenario():
        surface = await build_map()
        pins = await DataLayer.create_marker_layer(surface, layer_id="pins", name="Listings")
        areas = await DataLayer.create_polygon_layer(surface, layer_id="areas", name="Areas")
        return surface, pins, areas

    return _run(scenario())


class TestMarkerCreate:

    def test_create_attaches_to_map(self, layers, sdk):
        surface, pins, _ = layers
        marker = _run(
            Marker.create(surface, pins, position={"lat": 43.65, "lng": -79.38}, opts={"title": "A"})
        )
        assert marker.id.startswith("marker-")
        assert marker.position == LatLng(43.65, -79.38)
        assert marker.handle is sdk.markers[-1]
        assert marker.handle.options == {"title": "A"}
        assert marker.handle.map is surface.handle
        assert marker.rendered is True
        assert pins.get_feature(marker.id) is marker
        assert isinstance(marker, MapFeature)

    def test_create_hidden(self, layers):
        surface, pins, _ = layers
        marker = _run(Marker.create(surface, pins, position=(0, 0), visible=False))
        assert marker.visibility is FeatureVisibility.HIDDEN
        assert marker.handle.map is None

    def test_create_waits_for_parent_tasks(self, build_map):
        async def scenario():
            surface_task = asyncio.ensure_future(build_map())
            layer_task = asyncio.ensure_future(DataLayer.create_marker_layer(surface_task))
            return await Marker.create(surface_task, layer_task, position=(1, 2))

        marker = _run(scenario())
        assert marker.layer.surface is marker.surface

    def test_missing_layer(self, layers):
        surface, _, _ = layers
        with pytest.raises(PreconditionError, match="requires a marker layer"):
            _run(Marker.create(surface, None, position=(0, 0)))

    def test_missing_surface(self, layers):
        _, pins, _ = layers
        with pytest.raises(PreconditionError, match="requires a MapSurface"):
            _run(Marker.create(None, pins, position=(0, 0)))

    def test_wrong_layer_kind(self, layers):
        surface, _, areas = layers
        with pytest.raises(PreconditionError, match="polygon layer 'Areas'"):
            _run(Marker.create(surface, areas, position=(0, 0)))

    def test_layer_from_another_map(self, layers, build_map):
        _, pins, _ = layers
        other = _run(build_map("other"))
        with pytest.raises(PreconditionError, match="does not belong to map 'other'"):
            _run(Marker.create(other, pins, position=(0, 0)))

    def test_destroyed_map(self, layers):
        surface, pins, _ = layers
        surface.destroy()
        with pytest.raises(PreconditionError, match="destroyed"):
            _run(Marker.create(surface, pins, position=(0, 0)))

    def test_missing_marker_library(self, build_map):
        async def scenario():
            surface = await build_map(libraries=("maps",))
            # layer built by hand: create_marker_layer itself would refuse
            layer = DataLayer("pins", "Pins", "marker", surface)
            surface.add_layer(layer)
            await Marker.create(surface, layer, position=(0, 0), feature_id="m1")

        with pytest.raises(PreconditionError, match="'marker'.*not_loaded"):
            _run(scenario())


class TestAttributes:

    def test_plain_dict_without_schema(self, layers):
        surface, pins, _ = layers
        marker = _run(Marker.create(surface, pins, position=(0, 0), attributes={"a": 1}))
        assert marker.attributes == {"a": 1}

    def test_layer_schema_validates(self, build_map):
        async def scenario():
            surface = await build_map()
            layer = await DataLayer.create_marker_layer(surface, attribute_schema=Listing)
            return await Marker.create(
                surface, layer, position=(0, 0), attributes={"mls": "C123", "price": "450000"}
            )

        marker = _run(scenario())
        assert marker.attributes == Listing(mls="C123", price=450000)

    def test_invalid_attributes_name_the_layer(self, layers):
        surface, pins, _ = layers
        with pytest.raises(FeatureValidationError) as info:
            _run(
                Marker.create(
                    surface, pins, position=(0, 0), attributes={"mls": "C1"}, attribute_schema=Listing
                )
            )
        err = info.value
        assert err.layer_name == "Listings"
        assert err.layer_kind == "marker"
        assert "'Listings'" in str(err)
        assert "price" in str(err)
        assert len(pins.features) == 0

    def test_model_instance_passes_through(self, layers):
        surface, pins, _ = layers
        listing = Listing(mls="X", price=1)
        marker = _run(
            Marker.create(surface, pins, position=(0, 0), attributes=listing, attribute_schema=Listing)
        )
        assert marker.attributes is listing


class TestVisibility:

    def test_hide_and_show(self, layers):
        surface, pins, _ = layers
        marker = _run(Marker.create(surface, pins, position=(0, 0)))
        marker.hide()
        assert marker.visibility is FeatureVisibility.HIDDEN
        assert marker.handle.map is None
        marker.show()
        assert marker.visible is True
        assert marker.handle.map is surface.handle

    def test_repeated_hide_is_ignored(self, layers, bus):
        surface, pins, _ = layers
        marker = _run(Marker.create(surface, pins, position=(0, 0)))
        q = bus.subscribe("feature_visibility")
        marker.hide()
        marker.hide()
        assert q.qsize() == 1

    def test_polygon_hide_overrides_visible_style(self, layers):
        surface, _, areas = layers
        polygon = _run(Polygon.create(surface, areas, geometry=TRIANGLE, feature_id="t"))
        data = areas.renderer.data
        polygon.hide()
        assert data.effective_style(polygon.handle)["visible"] is False
        assert polygon.rendered is False
        polygon.show()
        assert data.is_rendered(polygon.handle)


class TestDelete:

    def test_marker_delete(self, layers):
        surface, pins, _ = layers
        marker = _run(Marker.create(surface, pins, position=(0, 0)))
        marker.delete()
        assert marker.deleted is True
        assert marker.handle.map is None
        assert marker.id not in pins.features
        assert marker.rendered is False

    def test_marker_delete_twice_is_safe(self, layers):
        surface, pins, _ = layers
        marker = _run(Marker.create(surface, pins, position=(0, 0)))
        marker.delete()
        marker.delete()
        assert marker.deleted is True

    def test_polygon_delete(self, layers):
        surface, _, areas = layers
        polygon = _run(Polygon.create(surface, areas, geometry=TRIANGLE, feature_id="t"))
        polygon.delete()
        assert polygon.deleted is True
        assert "t" not in areas.renderer.data.features


class TestPolygonGeometry:

    def test_single_ring(self):
        rings = normalize_geometry(TRIANGLE)
        assert len(rings) == 1
        assert rings[0][1] == LatLng(0.0, 1.0)

    def test_multiple_rings(self):
        hole = [{"lat": 0.2, "lng": 0.5}, {"lat": 0.5, "lng": 0.5}, {"lat": 0.5, "lng": 0.8}]
        rings = normalize_geometry([TRIANGLE, hole])
        assert len(rings) == 2
        assert rings[1][0] == LatLng(0.2, 0.5)

    def test_empty_geometry_rejected(self):
        with pytest.raises(ValueError, match="at least one ring"):
            normalize_geometry([])

    def test_degenerate_ring_rejected(self):
        with pytest.raises(ValueError, match="at least 3"):
            normalize_geometry([(0, 0), (1, 1)])

    def test_polygon_keeps_geometry(self, layers):
        surface, _, areas = layers
        polygon = _run(Polygon.create(surface, areas, geometry=TRIANGLE))
        assert polygon.geometry == normalize_geometry(TRIANGLE)
        assert polygon.snapshot()["rings"] == 1
