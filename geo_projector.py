"""
Local tangent-plane projection module.
Converts geodetic coordinates to planar meters around a fixed origin and back.

Frame convention: x grows east, z grows south, y (used by the 3D modules) grows up.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from config import GEO_PARAMS


@dataclass(frozen=True)
class GeoPoint:
    """Geodetic position in decimal degrees."""
    lat: float
    lon: float


@dataclass(frozen=True)
class PlanarPoint:
    """Position in meters relative to an Origin (x = east, z = south)."""
    x: float
    z: float


@dataclass(frozen=True)
class Origin:
    """Fixed geodetic anchor of the local planar frame."""
    lat: float
    lon: float

    @property
    def cos_lat(self) -> float:
        return math.cos(math.radians(self.lat))


def to_planar(origin: Origin, geo: GeoPoint, radius: float = GEO_PARAMS["earth_radius_m"]) -> PlanarPoint:
    """
    Project a geodetic point onto the local planar frame.

    Equirectangular approximation, accurate within a few kilometers of the origin.

    Args:
        origin: Frame anchor
        geo: Point to project
        radius: Earth radius in meters

    Returns:
        PlanarPoint in meters
    """
    d_lat = math.radians(geo.lat - origin.lat)
    d_lon = math.radians(geo.lon - origin.lon)

    x = d_lon * radius * origin.cos_lat
    z = -d_lat * radius  # latitude grows north, z grows south

    return PlanarPoint(x, z)


def to_geo(origin: Origin, planar: PlanarPoint, radius: float = GEO_PARAMS["earth_radius_m"]) -> GeoPoint:
    """
    Inverse of to_planar.

    Args:
        origin: Frame anchor
        planar: Point in meters
        radius: Earth radius in meters

    Returns:
        GeoPoint in decimal degrees
    """
    lat = origin.lat + math.degrees(-planar.z / radius)

    cos_lat = origin.cos_lat
    if cos_lat == 0:
        # Longitude is meaningless at the poles
        return GeoPoint(lat, origin.lon)

    lon = origin.lon + math.degrees(planar.x / (radius * cos_lat))
    return GeoPoint(lat, lon)


class GeoProjector:
    """Projects batches of coordinates against one Origin."""

    def __init__(self, origin: Origin, radius: float = GEO_PARAMS["earth_radius_m"]):
        self.origin = origin
        self.radius = radius

    def to_planar(self, lat: float, lon: float) -> PlanarPoint:
        return to_planar(self.origin, GeoPoint(lat, lon), self.radius)

    def to_geo(self, x: float, z: float) -> GeoPoint:
        return to_geo(self.origin, PlanarPoint(x, z), self.radius)

    def project_ring(self, coords: Iterable[Tuple[float, float]]) -> List[PlanarPoint]:
        """Project an ordered sequence of (lat, lon) pairs."""
        return [self.to_planar(lat, lon) for lat, lon in coords]
