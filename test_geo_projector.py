#!/usr/bin/env python3
"""
Tests for the local tangent-plane projection.
"""

import math

import pytest

from geo_projector import GeoPoint, GeoProjector, Origin, PlanarPoint, to_geo, to_planar

R = 6371000.0


def test_origin_maps_to_zero():
    origin = Origin(52.3641, 4.8828)
    point = to_planar(origin, GeoPoint(52.3641, 4.8828))
    assert point == PlanarPoint(0.0, 0.0)


def test_north_is_negative_z_and_east_is_positive_x():
    origin = Origin(40.0, -74.0)

    north = to_planar(origin, GeoPoint(40.001, -74.0))
    assert north.x == pytest.approx(0.0)
    assert north.z == pytest.approx(-0.001 * math.pi / 180 * R)

    east = to_planar(origin, GeoPoint(40.0, -73.999))
    assert east.z == pytest.approx(0.0)
    assert east.x == pytest.approx(0.001 * math.pi / 180 * R * math.cos(math.radians(40.0)))


def test_longitude_shrinks_with_latitude():
    at_equator = to_planar(Origin(0.0, 0.0), GeoPoint(0.0, 0.01))
    at_sixty = to_planar(Origin(60.0, 0.0), GeoPoint(60.0, 0.01))
    assert at_sixty.x == pytest.approx(at_equator.x / 2)


@pytest.mark.parametrize("lat, lon", [
    (52.3641, 4.8828),
    (-33.8688, 151.2093),
    (64.1466, -21.9426),
    (0.0, 0.0),
])
def test_round_trip_within_a_few_kilometers(lat, lon):
    origin = Origin(lat, lon)
    for d_lat, d_lon in [(0.02, 0.0), (-0.015, 0.03), (0.0, -0.025), (0.01, 0.01)]:
        geo = GeoPoint(lat + d_lat, lon + d_lon)
        back = to_geo(origin, to_planar(origin, geo))
        assert back.lat == pytest.approx(geo.lat, abs=1e-9)
        assert back.lon == pytest.approx(geo.lon, abs=1e-9)


def test_projector_batches_rings():
    projector = GeoProjector(Origin(48.8566, 2.3522))
    ring = [(48.8566, 2.3522), (48.8570, 2.3522), (48.8570, 2.3530)]
    points = projector.project_ring(ring)

    assert len(points) == 3
    assert points[0] == PlanarPoint(0.0, 0.0)
    assert points[1].z < 0
    assert points[2].x > 0

    geo = projector.to_geo(points[2].x, points[2].z)
    assert geo.lat == pytest.approx(48.8570)
    assert geo.lon == pytest.approx(2.3530)


def test_pole_origin_does_not_raise():
    origin = Origin(90.0, 0.0)
    planar = to_planar(origin, GeoPoint(89.99, 10.0))
    assert math.isfinite(planar.x) and math.isfinite(planar.z)
    assert to_geo(origin, planar).lat == pytest.approx(89.99)
