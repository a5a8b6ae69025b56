"""
Venue registry module.
Holds outdoor venues, their planar positions and their current/predicted sun state.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Optional, Tuple

import pandas as pd

from geo_projector import GeoPoint, Origin, PlanarPoint, to_planar

logger = logging.getLogger(__name__)


class Exposure(Enum):
    """Immediate sun exposure of a venue. UNKNOWN means not computed yet."""
    UNKNOWN = "unknown"
    SUNNY = "sunny"
    SHADED = "shaded"


@dataclass(frozen=True)
class SunState:
    """
    Exposure plus the predicted transition instant.

    `shades_at` is only set for SUNNY venues, `becomes_sunny_at` only for
    SHADED ones; None means no transition was found.
    """
    exposure: Exposure = Exposure.UNKNOWN
    shades_at: Optional[datetime] = None
    becomes_sunny_at: Optional[datetime] = None

    @property
    def transition_at(self) -> Optional[datetime]:
        if self.exposure is Exposure.SUNNY:
            return self.shades_at
        if self.exposure is Exposure.SHADED:
            return self.becomes_sunny_at
        return None


UNKNOWN_STATE = SunState()


@dataclass
class Venue:
    """
    Outdoor venue.

    `planar` is derived from `position` against the registry's origin and
    is None until an origin is set. `metadata` is opaque to the sun model.
    """
    venue_id: Hashable
    position: GeoPoint
    name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    planar: Optional[PlanarPoint] = None
    sun_state: SunState = UNKNOWN_STATE

    @property
    def is_sunny(self) -> Optional[bool]:
        """True/False once computed, None while unknown."""
        if self.sun_state.exposure is Exposure.UNKNOWN:
            return None
        return self.sun_state.exposure is Exposure.SUNNY


class VenueRegistry:
    """Owns the venue set of the current search area."""

    def __init__(self, origin: Optional[Origin] = None):
        self._origin = origin
        self._venues: Dict[Hashable, Venue] = {}
        self._lock = threading.Lock()

    @property
    def origin(self) -> Optional[Origin]:
        return self._origin

    def __len__(self) -> int:
        return len(self._venues)

    def __iter__(self) -> Iterator[Venue]:
        return iter(list(self._venues.values()))

    def __contains__(self, venue_id: Hashable) -> bool:
        return venue_id in self._venues

    def get(self, venue_id: Hashable) -> Optional[Venue]:
        return self._venues.get(venue_id)

    def set_venues(self, venues: Iterable[Venue]):
        """
        Replace the registry content.

        Venues are projected against the current origin and start UNKNOWN.
        Duplicate ids keep the last occurrence.
        """
        with self._lock:
            self._venues = {}
            for venue in venues:
                if venue.venue_id in self._venues:
                    logger.warning(f"Duplicate venue id {venue.venue_id!r}, keeping the last one")
                venue.planar = self._project(venue.position)
                venue.sun_state = UNKNOWN_STATE
                self._venues[venue.venue_id] = venue

        logger.info(f"Registry holds {len(self._venues)} venues")

    def set_origin(self, origin: Origin):
        """Re-anchor the planar frame; every venue is re-projected and reset."""
        with self._lock:
            self._origin = origin
            for venue in self._venues.values():
                venue.planar = self._project(venue.position)
                venue.sun_state = UNKNOWN_STATE

    def reset_states(self):
        """Forget all exposures and predictions (sun direction or buildings changed)."""
        with self._lock:
            for venue in self._venues.values():
                venue.sun_state = UNKNOWN_STATE

    def set_state(self, venue_id: Hashable, state: SunState):
        venue = self._venues.get(venue_id)
        if venue is None:
            logger.warning(f"Ignoring sun state for unknown venue {venue_id!r}")
            return
        venue.sun_state = state

    def apply_checks(self, results: Iterable[Tuple[Hashable, bool]]):
        """Record immediate exposures from OcclusionModel.batch_check; predictions are cleared."""
        for venue_id, sunny in results:
            self.set_state(venue_id, SunState(Exposure.SUNNY if sunny else Exposure.SHADED))

    def planar_points(self) -> List[Tuple[Hashable, PlanarPoint]]:
        """(id, planar position) pairs for every projected venue."""
        return [(v.venue_id, v.planar) for v in self if v.planar is not None]

    def sunny(self) -> List[Venue]:
        return [v for v in self if v.sun_state.exposure is Exposure.SUNNY]

    def shaded(self) -> List[Venue]:
        return [v for v in self if v.sun_state.exposure is Exposure.SHADED]

    def unknown(self) -> List[Venue]:
        return [v for v in self if v.sun_state.exposure is Exposure.UNKNOWN]

    def to_frame(self) -> pd.DataFrame:
        """Tabular snapshot of every venue and its sun state."""
        columns = ["venue_id", "name", "lat", "lon", "x", "z",
                   "exposure", "shades_at", "becomes_sunny_at"]
        rows = []
        for venue in self:
            rows.append({
                "venue_id": venue.venue_id,
                "name": venue.name,
                "lat": venue.position.lat,
                "lon": venue.position.lon,
                "x": venue.planar.x if venue.planar else None,
                "z": venue.planar.z if venue.planar else None,
                "exposure": venue.sun_state.exposure.value,
                "shades_at": venue.sun_state.shades_at,
                "becomes_sunny_at": venue.sun_state.becomes_sunny_at,
            })
        return pd.DataFrame(rows, columns=columns)

    def _project(self, position: GeoPoint) -> Optional[PlanarPoint]:
        if self._origin is None:
            return None
        return to_planar(self._origin, position)
