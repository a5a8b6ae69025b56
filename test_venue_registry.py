#!/usr/bin/env python3
"""
Tests for the venue registry and tri-state sun states.
"""

from datetime import datetime, timezone

import pytest

from geo_projector import GeoPoint, Origin, PlanarPoint
from venue_registry import Exposure, SunState, Venue, VenueRegistry

ORIGIN = Origin(52.3641, 4.8828)


def make_venues():
    return [
        Venue(venue_id=1, position=GeoPoint(52.3641, 4.8828), name="Centre"),
        Venue(venue_id=2, position=GeoPoint(52.3650, 4.8828), name="North"),
        Venue(venue_id=3, position=GeoPoint(52.3641, 4.8840), name="East"),
    ]


@pytest.fixture
def registry():
    reg = VenueRegistry(ORIGIN)
    reg.set_venues(make_venues())
    return reg


def test_venues_start_unknown_and_projected(registry):
    assert len(registry) == 3
    assert all(v.sun_state.exposure is Exposure.UNKNOWN for v in registry)
    assert all(v.is_sunny is None for v in registry)

    assert registry.get(1).planar == PlanarPoint(0.0, 0.0)
    assert registry.get(2).planar.z < 0
    assert registry.get(3).planar.x > 0


def test_unknown_is_not_shaded(registry):
    registry.apply_checks([(1, True)])

    assert [v.venue_id for v in registry.sunny()] == [1]
    assert registry.shaded() == []
    assert sorted(v.venue_id for v in registry.unknown()) == [2, 3]


def test_apply_checks_sets_immediate_exposure(registry):
    registry.apply_checks([(1, True), (2, False), (99, True)])

    assert registry.get(1).is_sunny is True
    assert registry.get(2).is_sunny is False
    assert registry.get(2).sun_state.becomes_sunny_at is None
    assert 99 not in registry


def test_reset_states(registry):
    when = datetime(2024, 6, 21, 18, 0, tzinfo=timezone.utc)
    registry.set_state(1, SunState(Exposure.SUNNY, shades_at=when))
    assert registry.get(1).sun_state.transition_at == when

    registry.reset_states()
    assert registry.get(1).sun_state == SunState()


def test_set_origin_reprojects_and_resets(registry):
    registry.apply_checks([(1, True), (2, True), (3, False)])
    registry.set_origin(Origin(52.3650, 4.8828))

    assert registry.get(2).planar.x == pytest.approx(0.0)
    assert registry.get(2).planar.z == pytest.approx(0.0)
    assert registry.get(1).planar.z > 0
    assert len(registry.unknown()) == 3


def test_registry_without_origin_has_no_planar_points():
    reg = VenueRegistry()
    reg.set_venues(make_venues())
    assert reg.planar_points() == []

    reg.set_origin(ORIGIN)
    assert [venue_id for venue_id, _ in reg.planar_points()] == [1, 2, 3]


def test_duplicate_ids_keep_last():
    reg = VenueRegistry(ORIGIN)
    reg.set_venues([
        Venue(venue_id="a", position=GeoPoint(52.0, 4.0), name="first"),
        Venue(venue_id="a", position=GeoPoint(52.0, 4.0), name="second"),
    ])
    assert len(reg) == 1
    assert reg.get("a").name == "second"


def test_transition_follows_exposure():
    when = datetime(2024, 6, 21, 18, 0, tzinfo=timezone.utc)
    assert SunState(Exposure.SUNNY, shades_at=when).transition_at == when
    assert SunState(Exposure.SHADED, becomes_sunny_at=when).transition_at == when
    assert SunState(Exposure.UNKNOWN, shades_at=when).transition_at is None


def test_to_frame(registry):
    registry.apply_checks([(1, True), (2, False)])
    frame = registry.to_frame()

    assert list(frame.columns) == ["venue_id", "name", "lat", "lon", "x", "z",
                                   "exposure", "shades_at", "becomes_sunny_at"]
    assert len(frame) == 3
    assert frame.set_index("venue_id").loc[1, "exposure"] == "sunny"
    assert frame.set_index("venue_id").loc[3, "exposure"] == "unknown"
