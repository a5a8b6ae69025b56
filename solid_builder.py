"""
Occlusion solid construction module.
Extrudes building footprints into closed prisms made of explicit triangles.
"""

import math
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from shapely import constrained_delaunay_triangles, make_valid
from shapely.errors import GEOSException
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon

from config import BUILDING_PARAMS
from geo_projector import PlanarPoint

logger = logging.getLogger(__name__)


class InvalidFootprintError(ValueError):
    """Raised when a footprint/height pair cannot form a solid."""


@dataclass(frozen=True)
class Building:
    """Footprint in the planar frame plus height in meters."""
    footprint: Tuple[PlanarPoint, ...]
    height: float
    building_id: Optional[str] = None


@dataclass(frozen=True)
class OcclusionSolid:
    """
    Closed vertical prism used for ray blocking.

    Attributes:
        footprint: Cleaned footprint the solid was swept from
        height: Top elevation in meters (bottom is 0)
        faces: (n, 3, 3) array of triangles, vertices as (x, y, z) with y up
        building_id: Identifier of the source building, if any
    """
    footprint: Tuple[PlanarPoint, ...]
    height: float
    faces: np.ndarray = field(repr=False, compare=False)
    building_id: Optional[str] = None

    @property
    def face_count(self) -> int:
        return int(self.faces.shape[0])


class SolidBuilder:
    """Turns footprint + height into an OcclusionSolid."""

    def __init__(self, min_area: float = BUILDING_PARAMS["min_area_m2"]):
        self.min_area = min_area

    def build(self, footprint: Sequence[PlanarPoint], height: float,
              building_id: Optional[str] = None) -> OcclusionSolid:
        """
        Sweep a footprint from elevation 0 to `height`.

        Self-intersecting footprints keep their walls as drawn; their caps
        cover the lobes GEOS splits the outline into.

        Args:
            footprint: Ordered ground outline
            height: Building height in meters
            building_id: Optional identifier carried onto the solid

        Returns:
            OcclusionSolid with side walls and both caps

        Raises:
            InvalidFootprintError: fewer than 3 distinct points, no area,
                or a non-positive height
        """
        if height is None or not math.isfinite(height) or height <= 0:
            raise InvalidFootprintError(f"Non-positive building height: {height!r}")

        ring = self._clean_ring(footprint)
        if len(ring) < 3:
            raise InvalidFootprintError(f"Footprint has {len(ring)} distinct points, need 3")

        # A symmetric bowtie has zero signed area, so measure the repaired lobes
        parts = self._polygon_parts(Polygon([(p.x, p.z) for p in ring]))
        if sum(part.area for part in parts) <= self.min_area:
            raise InvalidFootprintError("Footprint has no area")

        walls = self._wall_triangles(ring, height)
        cap = self._cap_triangles(parts, ring)

        bottom = [[(a[0], 0.0, a[1]), (b[0], 0.0, b[1]), (c[0], 0.0, c[1])] for a, b, c in cap]
        top = [[(a[0], height, a[1]), (b[0], height, b[1]), (c[0], height, c[1])] for a, b, c in cap]

        faces = np.array(walls + bottom + top, dtype=np.float64).reshape(-1, 3, 3)

        return OcclusionSolid(
            footprint=tuple(ring),
            height=float(height),
            faces=faces,
            building_id=building_id,
        )

    def _clean_ring(self, footprint: Sequence[PlanarPoint]) -> List[PlanarPoint]:
        """Drop non-finite points, consecutive duplicates and the closing vertex."""
        ring: List[PlanarPoint] = []
        for point in footprint:
            if not (math.isfinite(point.x) and math.isfinite(point.z)):
                raise InvalidFootprintError(f"Non-finite footprint vertex: {point}")
            if ring and ring[-1] == point:
                continue
            ring.append(point)

        while len(ring) > 1 and ring[0] == ring[-1]:
            ring.pop()

        return ring

    def _wall_triangles(self, ring: List[PlanarPoint], height: float) -> List[list]:
        """One quad per edge, split into two triangles."""
        triangles = []
        count = len(ring)
        for i in range(count):
            a = ring[i]
            b = ring[(i + 1) % count]

            a0 = (a.x, 0.0, a.z)
            b0 = (b.x, 0.0, b.z)
            b1 = (b.x, height, b.z)
            a1 = (a.x, height, a.z)

            triangles.append([a0, b0, b1])
            triangles.append([a0, b1, a1])

        return triangles

    def _cap_triangles(self, parts: List[Polygon], ring: List[PlanarPoint]) -> List[Tuple]:
        """
        Triangulate the footprint in the ground plane.

        Constrained Delaunay triangles of each polygon part, so every outline
        edge is a triangle edge and no triangle leaves the footprint. Outlines
        GEOS cannot handle fall back to a fan around the first vertex.
        """
        try:
            triangles = []
            for part in parts:
                for tri in constrained_delaunay_triangles(part).geoms:
                    triangles.append(tuple(list(tri.exterior.coords)[:3]))
            if triangles:
                return triangles
        except GEOSException as e:
            logger.debug(f"Cap triangulation failed, using fan: {e}")

        first = (ring[0].x, ring[0].z)
        return [
            (first, (ring[i].x, ring[i].z), (ring[i + 1].x, ring[i + 1].z))
            for i in range(1, len(ring) - 1)
        ]

    def _polygon_parts(self, polygon: Polygon) -> List[Polygon]:
        """Valid polygonal pieces of the outline; self-intersections split into lobes."""
        if polygon.is_valid:
            return [polygon]

        repaired = make_valid(polygon)
        if isinstance(repaired, Polygon):
            return [repaired]
        if isinstance(repaired, MultiPolygon):
            return list(repaired.geoms)
        if isinstance(repaired, GeometryCollection):
            parts = []
            for geom in repaired.geoms:
                if isinstance(geom, Polygon):
                    parts.append(geom)
                elif isinstance(geom, MultiPolygon):
                    parts.extend(geom.geoms)
            return parts
        return []
