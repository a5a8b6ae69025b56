"""
Sun position and sun event module.
Low-precision solar ephemeris (the formulas popularised by the SunCalc library,
after the astronomy answers articles) plus conversion of the sun's position into
a direction vector in the local planar frame.

Angles are radians. Azimuth is measured from south, positive towards west.
"""

import math
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import numpy as np

from config import SUN_PARAMS

logger = logging.getLogger(__name__)

RAD = math.pi / 180
DAY_SECONDS = 86400.0
J1970 = 2440588
J2000 = 2451545
J0 = 0.0009

# Obliquity of the Earth
OBLIQUITY = RAD * 23.4397

# (altitude in degrees, morning event, evening event)
SUN_EVENTS = (
    (-0.833, "sunrise", "sunset"),
    (-0.3, "sunrise_end", "sunset_start"),
    (-6.0, "dawn", "dusk"),
    (-12.0, "nautical_dawn", "nautical_dusk"),
    (-18.0, "night_end", "night"),
    (6.0, "golden_hour_end", "golden_hour"),
)


@dataclass(frozen=True)
class SunPosition:
    """Sun altitude above the horizon and azimuth (0 = south), in radians."""
    altitude: float
    azimuth: float

    @property
    def is_up(self) -> bool:
        return self.altitude > 0

    @property
    def altitude_deg(self) -> float:
        return math.degrees(self.altitude)

    @property
    def azimuth_deg(self) -> float:
        return math.degrees(self.azimuth)


@dataclass(frozen=True)
class SunTimes:
    """
    Day-level sun events as UTC datetimes.

    Events that do not happen on the given day (polar day or night) are None.
    """
    solar_noon: datetime
    nadir: datetime
    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None
    sunrise_end: Optional[datetime] = None
    sunset_start: Optional[datetime] = None
    dawn: Optional[datetime] = None
    dusk: Optional[datetime] = None
    nautical_dawn: Optional[datetime] = None
    nautical_dusk: Optional[datetime] = None
    night_end: Optional[datetime] = None
    night: Optional[datetime] = None
    golden_hour_end: Optional[datetime] = None
    golden_hour: Optional[datetime] = None


def to_utc(instant: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_julian(instant: datetime) -> float:
    return to_utc(instant).timestamp() / DAY_SECONDS - 0.5 + J1970


def from_julian(julian: float) -> datetime:
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(days=julian + 0.5 - J1970)


def to_days(instant: datetime) -> float:
    return to_julian(instant) - J2000


def sun_direction(altitude: float, azimuth: float) -> np.ndarray:
    """
    Unit vector pointing from the ground towards the sun.

    x = cos(alt)·sin(az), y = sin(alt), z = cos(alt)·cos(az); with azimuth
    measured from south this lands in the x-east / z-south frame.
    """
    cos_alt = math.cos(altitude)
    return np.array([
        cos_alt * math.sin(azimuth),
        math.sin(altitude),
        cos_alt * math.cos(azimuth),
    ], dtype=np.float64)


class SunEphemeris:
    """Computes sun positions and day events for any instant and location."""

    def __init__(self, light_distance: float = SUN_PARAMS["light_distance_m"]):
        self.light_distance = light_distance

    # ------------------------------------------------------------------
    # Position
    # ------------------------------------------------------------------

    def position(self, instant: datetime, lat: float, lon: float) -> SunPosition:
        """
        Calculate the sun position for an instant and location.

        Args:
            instant: Moment to evaluate (naive = UTC)
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees

        Returns:
            SunPosition with altitude and azimuth in radians
        """
        lw = RAD * -lon
        phi = RAD * lat
        d = to_days(instant)

        dec, ra = self._sun_coords(d)
        hour_angle = self._sidereal_time(d, lw) - ra

        return SunPosition(
            altitude=self._altitude(hour_angle, phi, dec),
            azimuth=self._azimuth(hour_angle, phi, dec),
        )

    @staticmethod
    def direction(altitude: float, azimuth: float) -> np.ndarray:
        return sun_direction(altitude, azimuth)

    def light_position(self, altitude: float, azimuth: float,
                       distance: Optional[float] = None) -> np.ndarray:
        """Direction scaled to a placement distance, for renderers that need a light position."""
        scale = self.light_distance if distance is None else distance
        return sun_direction(altitude, azimuth) * scale

    @staticmethod
    def light_intensity(altitude: float) -> float:
        """Light intensity factor, dimmed near and below the horizon."""
        return max(0.0, math.sin(altitude)) * 0.8 + 0.2

    # ------------------------------------------------------------------
    # Day events
    # ------------------------------------------------------------------

    def day_times(self, instant: datetime, lat: float, lon: float,
                  height: float = 0.0) -> SunTimes:
        """
        Calculate sun events for the solar day closest to `instant`.

        Args:
            instant: Any moment on the day of interest
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees
            height: Observer height above the horizon plane in meters

        Returns:
            SunTimes; events that do not occur that day are None
        """
        lw = RAD * -lon
        phi = RAD * lat
        dh = self._observer_angle(height)

        d = to_days(instant)
        n = self._julian_cycle(d, lw)
        ds = self._approx_transit(0, lw, n)

        m = self._solar_mean_anomaly(ds)
        ecl = self._ecliptic_longitude(m)
        dec = self._declination(ecl, 0)

        j_noon = self._solar_transit_j(ds, m, ecl)

        result: Dict[str, Optional[datetime]] = {
            "solar_noon": from_julian(j_noon),
            "nadir": from_julian(j_noon - 0.5),
        }

        for angle, rise_name, set_name in SUN_EVENTS:
            h0 = (angle + dh) * RAD
            j_set = self._get_set_j(h0, lw, phi, dec, n, m, ecl)

            if j_set is None:
                result[rise_name] = None
                result[set_name] = None
                continue

            j_rise = j_noon - (j_set - j_noon)
            result[rise_name] = from_julian(j_rise)
            result[set_name] = from_julian(j_set)

        if result["sunset"] is None:
            logger.debug(f"No sunrise/sunset at ({lat:.4f}, {lon:.4f}) on {to_utc(instant).date()}")

        return SunTimes(**result)

    # ------------------------------------------------------------------
    # Astronomical helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _right_ascension(ecl_lon: float, ecl_lat: float) -> float:
        return math.atan2(
            math.sin(ecl_lon) * math.cos(OBLIQUITY) - math.tan(ecl_lat) * math.sin(OBLIQUITY),
            math.cos(ecl_lon),
        )

    @staticmethod
    def _declination(ecl_lon: float, ecl_lat: float) -> float:
        return math.asin(
            math.sin(ecl_lat) * math.cos(OBLIQUITY)
            + math.cos(ecl_lat) * math.sin(OBLIQUITY) * math.sin(ecl_lon)
        )

    @staticmethod
    def _azimuth(hour_angle: float, phi: float, dec: float) -> float:
        return math.atan2(
            math.sin(hour_angle),
            math.cos(hour_angle) * math.sin(phi) - math.tan(dec) * math.cos(phi),
        )

    @staticmethod
    def _altitude(hour_angle: float, phi: float, dec: float) -> float:
        sin_alt = (math.sin(phi) * math.sin(dec)
                   + math.cos(phi) * math.cos(dec) * math.cos(hour_angle))
        return math.asin(max(-1.0, min(1.0, sin_alt)))

    @staticmethod
    def _sidereal_time(d: float, lw: float) -> float:
        return RAD * (280.16 + 360.9856235 * d) - lw

    @staticmethod
    def _solar_mean_anomaly(d: float) -> float:
        return RAD * (357.5291 + 0.98560028 * d)

    @staticmethod
    def _ecliptic_longitude(m: float) -> float:
        # Equation of center
        c = RAD * (1.9148 * math.sin(m) + 0.02 * math.sin(2 * m) + 0.0003 * math.sin(3 * m))
        # Perihelion of the Earth
        p = RAD * 102.9372
        return m + c + p + math.pi

    def _sun_coords(self, d: float):
        m = self._solar_mean_anomaly(d)
        ecl = self._ecliptic_longitude(m)
        return self._declination(ecl, 0), self._right_ascension(ecl, 0)

    @staticmethod
    def _julian_cycle(d: float, lw: float) -> float:
        # JavaScript Math.round semantics: halves round up
        return math.floor(d - J0 - lw / (2 * math.pi) + 0.5)

    @staticmethod
    def _approx_transit(ht: float, lw: float, n: float) -> float:
        return J0 + (ht + lw) / (2 * math.pi) + n

    @staticmethod
    def _solar_transit_j(ds: float, m: float, ecl: float) -> float:
        return J2000 + ds + 0.0053 * math.sin(m) - 0.0069 * math.sin(2 * ecl)

    @staticmethod
    def _hour_angle(h: float, phi: float, dec: float) -> Optional[float]:
        cos_h = (math.sin(h) - math.sin(phi) * math.sin(dec)) / (math.cos(phi) * math.cos(dec))
        if not -1.0 <= cos_h <= 1.0:
            # Sun never reaches this altitude today
            return None
        return math.acos(cos_h)

    @staticmethod
    def _observer_angle(height: float) -> float:
        return -2.076 * math.sqrt(max(0.0, height)) / 60

    def _get_set_j(self, h: float, lw: float, phi: float, dec: float,
                   n: float, m: float, ecl: float) -> Optional[float]:
        w = self._hour_angle(h, phi, dec)
        if w is None:
            return None
        a = self._approx_transit(w, lw, n)
        return self._solar_transit_j(a, m, ecl)
