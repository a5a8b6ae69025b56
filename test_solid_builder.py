#!/usr/bin/env python3
"""
Tests for footprint extrusion into occlusion solids.
"""

import math

import numpy as np
import pytest
from shapely.geometry import Polygon
from shapely.ops import unary_union

from geo_projector import PlanarPoint
from solid_builder import InvalidFootprintError, SolidBuilder


def square(cx, cz, side):
    half = side / 2
    return [
        PlanarPoint(cx - half, cz - half),
        PlanarPoint(cx + half, cz - half),
        PlanarPoint(cx + half, cz + half),
        PlanarPoint(cx - half, cz + half),
    ]


@pytest.fixture
def builder():
    return SolidBuilder()


def test_square_prism_faces(builder):
    solid = builder.build(square(0, 0, 10), 12.0, building_id="b1")

    # 4 walls as 2 triangles each, 2 triangles per cap
    assert solid.face_count == 12
    assert solid.faces.shape == (12, 3, 3)
    assert solid.building_id == "b1"
    assert solid.height == 12.0

    ys = solid.faces[:, :, 1]
    assert ys.min() == 0.0
    assert ys.max() == 12.0

    xs = solid.faces[:, :, 0]
    zs = solid.faces[:, :, 2]
    assert xs.min() == -5 and xs.max() == 5
    assert zs.min() == -5 and zs.max() == 5


def test_closing_vertex_and_duplicates_are_dropped(builder):
    ring = square(0, 0, 10)
    noisy = [ring[0], ring[0], ring[1], ring[2], ring[3], ring[0]]
    solid = builder.build(noisy, 5.0)
    assert len(solid.footprint) == 4
    assert solid.face_count == 12


def ring_of(coords):
    return [PlanarPoint(x, z) for x, z in coords]


def star(points, outer, inner):
    coords = []
    for i in range(points * 2):
        radius = outer if i % 2 == 0 else inner
        angle = math.pi * i / points
        coords.append((radius * math.cos(angle), radius * math.sin(angle)))
    return coords


def top_cap(solid):
    top = solid.faces[np.all(solid.faces[:, :, 1] == solid.height, axis=1)]
    return unary_union([Polygon(tri[:, [0, 2]]) for tri in top])


CONCAVE_FOOTPRINTS = {
    "l_shape": [(0, 0), (20, 0), (20, 10), (10, 10), (10, 20), (0, 20)],
    "c_shape": [(0, 0), (30, 0), (30, 10), (10, 10), (10, 20), (30, 20), (30, 30), (0, 30)],
    "star": star(8, 20.0, 5.0),
    "sawtooth": [(0, 0), (40, 0), (40, 10), (35, 5), (30, 10), (25, 5), (20, 10),
                 (15, 5), (10, 10), (5, 5), (0, 10)],
}


@pytest.mark.parametrize("name", sorted(CONCAVE_FOOTPRINTS))
def test_caps_match_concave_footprints(builder, name):
    coords = CONCAVE_FOOTPRINTS[name]
    solid = builder.build(ring_of(coords), 8.0)

    cap = top_cap(solid)
    footprint = Polygon(coords)

    assert cap.area == pytest.approx(footprint.area)
    assert cap.symmetric_difference(footprint).area == pytest.approx(0.0, abs=1e-6)


@pytest.mark.parametrize("footprint", [
    [],
    [PlanarPoint(0, 0)],
    [PlanarPoint(0, 0), PlanarPoint(5, 5)],
    [PlanarPoint(0, 0), PlanarPoint(5, 5), PlanarPoint(0, 0)],
    [PlanarPoint(0, 0), PlanarPoint(5, 5), PlanarPoint(10, 10)],
])
def test_degenerate_footprints_are_refused(builder, footprint):
    with pytest.raises(InvalidFootprintError):
        builder.build(footprint, 10.0)


@pytest.mark.parametrize("height", [0.0, -3.0, math.nan, math.inf, None])
def test_non_positive_heights_are_refused(builder, height):
    with pytest.raises(InvalidFootprintError):
        builder.build(square(0, 0, 10), height)


def test_non_finite_vertex_is_refused(builder):
    ring = square(0, 0, 10)
    ring[2] = PlanarPoint(math.nan, 1.0)
    with pytest.raises(InvalidFootprintError):
        builder.build(ring, 10.0)


def test_invalid_footprint_error_is_a_value_error():
    assert issubclass(InvalidFootprintError, ValueError)


def test_self_intersecting_footprint_builds_best_effort(builder):
    bowtie = [PlanarPoint(0, 0), PlanarPoint(10, 10), PlanarPoint(10, 0), PlanarPoint(0, 20)]
    solid = builder.build(bowtie, 6.0)

    # Walls are always present, caps are best effort
    assert solid.face_count >= 8
    assert np.isfinite(solid.faces).all()


def test_symmetric_bowtie_builds_both_lobes(builder):
    bowtie = ring_of([(0, 0), (10, 10), (10, 0), (0, 10)])
    solid = builder.build(bowtie, 6.0)

    # Signed area is zero; the two lobes cover 25 m2 each
    assert top_cap(solid).area == pytest.approx(50.0)
