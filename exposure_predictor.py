"""
Exposure prediction module.
Walks forward in time from "now" to find when a venue's sun/shade state flips.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from config import PREDICTION_PARAMS
from geo_projector import Origin, PlanarPoint, to_planar
from occlusion_model import OcclusionModel
from sun_ephemeris import SunEphemeris, sun_direction, to_utc
from venue_registry import Exposure, SunState, Venue

logger = logging.getLogger(__name__)


class ExposurePredictor:
    """Combines the ephemeris and the occlusion model over a bounded time horizon."""

    def __init__(self,
                 occlusion: OcclusionModel,
                 ephemeris: Optional[SunEphemeris] = None,
                 sunny_step_minutes: int = PREDICTION_PARAMS["sunny_step_minutes"],
                 shaded_step_minutes: int = PREDICTION_PARAMS["shaded_step_minutes"],
                 horizon_minutes: Optional[int] = None):
        """
        Initialize the predictor.

        Args:
            occlusion: Occlusion model holding the current buildings
            ephemeris: Sun ephemeris, a default one is created if omitted
            sunny_step_minutes: Sampling step while looking for shade
            shaded_step_minutes: Sampling step while looking for sun
            horizon_minutes: How far ahead to look
        """
        self.occlusion = occlusion
        self.ephemeris = ephemeris or SunEphemeris()
        self.sunny_step = timedelta(minutes=sunny_step_minutes)
        self.shaded_step = timedelta(minutes=shaded_step_minutes)
        if horizon_minutes is None:
            horizon_minutes = PREDICTION_PARAMS["horizon_minutes"]
        self.horizon = timedelta(minutes=horizon_minutes)

    def predict(self, venue: Venue, origin: Origin, now: datetime) -> SunState:
        """
        Compute the venue's current exposure and its next transition.

        The result is written to `venue.sun_state` and returned.

        Args:
            venue: Venue to evaluate (only its position is read)
            origin: Frame origin; also the location used for the sun
            now: Instant to start from (naive = UTC)

        Returns:
            SunState with `shades_at` (sunny) or `becomes_sunny_at` (shaded)
        """
        now = to_utc(now)
        point = venue.planar if venue.planar is not None else to_planar(origin, venue.position)

        sunset = self.ephemeris.day_times(now, origin.lat, origin.lon).sunset

        if self._sunlit_at(point, origin, now):
            state = SunState(Exposure.SUNNY, shades_at=self._find_shade(point, origin, now, sunset))
        else:
            state = SunState(Exposure.SHADED, becomes_sunny_at=self._find_sun(point, origin, now, sunset))

        logger.debug(f"Venue {venue.venue_id!r}: {state.exposure.value}, transition at {state.transition_at}")
        venue.sun_state = state
        return state

    def _sunlit_at(self, point: PlanarPoint, origin: Origin, instant: datetime) -> bool:
        sun = self.ephemeris.position(instant, origin.lat, origin.lon)
        if sun.altitude <= 0:
            return False
        return self.occlusion.is_sunlit(point, sun_direction(sun.altitude, sun.azimuth))

    def _steps(self, now: datetime, step: timedelta):
        count = int(self.horizon / step)
        for i in range(1, count + 1):
            yield now + step * i

    def _find_shade(self, point: PlanarPoint, origin: Origin, now: datetime,
                    sunset: Optional[datetime]) -> Optional[datetime]:
        """First sampled instant without sun; sunset if the venue stays sunny until then."""
        for instant in self._steps(now, self.sunny_step):
            if sunset is not None and instant > sunset:
                return sunset

            sun = self.ephemeris.position(instant, origin.lat, origin.lon)
            if sun.altitude <= 0:
                return instant

            if not self.occlusion.is_sunlit(point, sun_direction(sun.altitude, sun.azimuth)):
                return instant

        # No blocker inside the horizon; None when the sun does not set today
        return sunset

    def _find_sun(self, point: PlanarPoint, origin: Origin, now: datetime,
                  sunset: Optional[datetime]) -> Optional[datetime]:
        """First sampled instant with sun before sunset, or None."""
        for instant in self._steps(now, self.shaded_step):
            if sunset is not None and instant > sunset:
                return None

            sun = self.ephemeris.position(instant, origin.lat, origin.lon)
            if sun.altitude <= 0:
                continue

            if self.occlusion.is_sunlit(point, sun_direction(sun.altitude, sun.azimuth)):
                return instant

        return None
