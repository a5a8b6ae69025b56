"""
Sun exposure service module.
Ties projection, occlusion, ephemeris and prediction together for one search area.

The service has no timers: callers push an instant (wall clock or a simulated
one) and pull the resulting venue states.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Hashable, Iterable, List, Optional

import numpy as np

from geo_projector import GeoProjector, Origin
from data_loaders import RawBuilding
from exposure_predictor import ExposurePredictor
from occlusion_model import OcclusionModel
from sun_ephemeris import SunEphemeris, SunPosition, SunTimes, sun_direction, to_utc
from venue_registry import Exposure, SunState, Venue, VenueRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshResult:
    """Snapshot produced by one refresh."""
    instant: datetime
    sun: SunPosition
    states: Dict[Hashable, SunState]

    @property
    def sunny_ids(self) -> List[Hashable]:
        return [venue_id for venue_id, state in self.states.items() if state.exposure is Exposure.SUNNY]


class SunExposureService:
    """Computes sun exposure and transitions for venues around an origin."""

    def __init__(self,
                 lat: float,
                 lon: float,
                 ephemeris: Optional[SunEphemeris] = None,
                 occlusion: Optional[OcclusionModel] = None):
        """
        Initialize the service for a search center.

        Args:
            lat: Origin latitude in decimal degrees
            lon: Origin longitude in decimal degrees
            ephemeris: SunEphemeris instance
            occlusion: OcclusionModel instance
        """
        self.origin = Origin(lat, lon)
        self.projector = GeoProjector(self.origin)
        self.ephemeris = ephemeris or SunEphemeris()
        self.occlusion = occlusion or OcclusionModel()
        self.registry = VenueRegistry(self.origin)
        self.predictor = ExposurePredictor(self.occlusion, self.ephemeris)

        self._raw_buildings: List[RawBuilding] = []

    def set_origin(self, lat: float, lon: float):
        """Move the frame origin; venues and buildings are re-projected and states reset."""
        try:
            logger.info(f"Setting origin to ({lat:.6f}, {lon:.6f})")
            self.origin = Origin(lat, lon)
            self.projector = GeoProjector(self.origin)
            self.registry.set_origin(self.origin)
            self._rebuild_occlusion()
        except Exception as e:
            logger.error(f"Error setting origin: {e}")
            raise

    def load_buildings(self, buildings: Iterable[RawBuilding]) -> int:
        """
        Replace the building set of the area.

        Args:
            buildings: Geodetic footprints with heights

        Returns:
            Number of occlusion solids built
        """
        try:
            self._raw_buildings = list(buildings)
            count = self._rebuild_occlusion()
            self.registry.reset_states()
            return count
        except Exception as e:
            logger.error(f"Error loading buildings: {e}")
            raise

    def load_venues(self, venues: Iterable[Venue]):
        """Replace the venue set of the area."""
        self.registry.set_venues(venues)

    def current_instant(self, now: Optional[datetime] = None, at: Optional[datetime] = None) -> datetime:
        """Simulated instant if given, else `now`, else the wall clock."""
        if at is not None:
            return to_utc(at)
        if now is not None:
            return to_utc(now)
        return datetime.now(timezone.utc)

    def sun_position(self, at: Optional[datetime] = None) -> SunPosition:
        return self.ephemeris.position(self.current_instant(at=at), self.origin.lat, self.origin.lon)

    def sun_times(self, at: Optional[datetime] = None) -> SunTimes:
        """Sunrise, sunset, solar noon and golden hour for the day of `at`."""
        return self.ephemeris.day_times(self.current_instant(at=at), self.origin.lat, self.origin.lon)

    def light_position(self, at: Optional[datetime] = None, distance: Optional[float] = None) -> np.ndarray:
        sun = self.sun_position(at)
        return self.ephemeris.light_position(sun.altitude, sun.azimuth, distance)

    def refresh(self, now: Optional[datetime] = None, at: Optional[datetime] = None) -> RefreshResult:
        """
        Recompute every venue's exposure and next transition.

        Args:
            now: Current instant (defaults to the wall clock)
            at: Simulated instant overriding `now`

        Returns:
            RefreshResult with the sun position and per-venue states
        """
        try:
            instant = self.current_instant(now, at)
            sun = self.ephemeris.position(instant, self.origin.lat, self.origin.lon)
            logger.info(f"Refreshing {len(self.registry)} venues at {instant.isoformat()}: "
                        f"altitude={sun.altitude_deg:.1f}°, azimuth={sun.azimuth_deg:.1f}°")

            direction = sun_direction(sun.altitude, sun.azimuth)
            self.registry.apply_checks(self.occlusion.batch_check(self.registry.planar_points(), direction))

            states = {}
            for venue in self.registry:
                states[venue.venue_id] = self.predictor.predict(venue, self.origin, instant)

            logger.info(f"{len(self.registry.sunny())} sunny, {len(self.registry.shaded())} shaded")
            return RefreshResult(instant=instant, sun=sun, states=states)

        except Exception as e:
            logger.error(f"Error refreshing venue exposure: {e}")
            raise

    def _rebuild_occlusion(self) -> int:
        planar = [raw.to_planar(self.projector) for raw in self._raw_buildings]
        return self.occlusion.set_buildings(planar)
