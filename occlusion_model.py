"""
Occlusion model module.
Owns the building solids of the current area and answers point-in-sun queries by ray casting.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Hashable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from config import OCCLUSION_PARAMS
from geo_projector import PlanarPoint
from solid_builder import Building, InvalidFootprintError, OcclusionSolid, SolidBuilder

logger = logging.getLogger(__name__)


class _ReadWriteLock:
    """Many concurrent readers, one exclusive writer; a waiting writer blocks new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0
        self._writing = False

    @contextmanager
    def reading(self):
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def writing(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class OcclusionModel:
    """
    Set of building solids plus exhaustive ray queries against them.

    Queries are read-only and may run concurrently; `set_buildings` waits for
    in-flight queries and blocks new ones while it rebuilds.
    """

    def __init__(self,
                 builder: Optional[SolidBuilder] = None,
                 ray_origin_height: float = OCCLUSION_PARAMS["ray_origin_height_m"],
                 max_distance: float = OCCLUSION_PARAMS["max_ray_distance_m"],
                 epsilon: float = OCCLUSION_PARAMS["ray_epsilon"]):
        """
        Initialize an empty occlusion model.

        Args:
            builder: SolidBuilder used to extrude buildings
            ray_origin_height: Height above ground the rays start from (meters)
            max_distance: Maximum ray traversal distance (meters)
            epsilon: Minimum hit distance and parallel-ray threshold
        """
        self.builder = builder or SolidBuilder()
        self.ray_origin_height = ray_origin_height
        self.max_distance = max_distance
        self.epsilon = epsilon

        self._lock = _ReadWriteLock()
        self._solids: List[OcclusionSolid] = []
        self._reset_arrays()

    def _reset_arrays(self):
        self._v0 = np.empty((0, 3))
        self._edge1 = np.empty((0, 3))
        self._edge2 = np.empty((0, 3))

    @property
    def solids(self) -> Tuple[OcclusionSolid, ...]:
        with self._lock.reading():
            return tuple(self._solids)

    @property
    def solid_count(self) -> int:
        with self._lock.reading():
            return len(self._solids)

    @property
    def face_count(self) -> int:
        with self._lock.reading():
            return int(self._v0.shape[0])

    def set_buildings(self, buildings: Iterable[Building]) -> int:
        """
        Replace all solids with ones built from `buildings`.

        Buildings that cannot form a solid are skipped.

        Args:
            buildings: Buildings in the current planar frame

        Returns:
            Number of solids built
        """
        solids = []
        skipped = 0

        for building in buildings:
            try:
                solids.append(self.builder.build(building.footprint, building.height, building.building_id))
            except InvalidFootprintError as e:
                skipped += 1
                logger.debug(f"Skipping building {building.building_id}: {e}")

        if solids:
            faces = np.concatenate([solid.faces for solid in solids], axis=0)
        else:
            faces = np.empty((0, 3, 3))

        with self._lock.writing():
            self._solids = solids
            self._v0 = faces[:, 0, :]
            self._edge1 = faces[:, 1, :] - faces[:, 0, :]
            self._edge2 = faces[:, 2, :] - faces[:, 0, :]

        logger.info(f"Occlusion model ready: {len(solids)} solids, {faces.shape[0]} faces, {skipped} skipped")
        return len(solids)

    def clear(self):
        """Remove every solid; all points become sunlit while the sun is up."""
        with self._lock.writing():
            self._solids = []
            self._reset_arrays()

    def is_sunlit(self, point: PlanarPoint, sun_direction: Sequence[float]) -> bool:
        """
        Check whether a point at table height sees the sun.

        Args:
            point: Venue position in the planar frame
            sun_direction: Vector from the ground towards the sun (x, y, z)

        Returns:
            True if the ray towards the sun hits no solid
        """
        direction = np.asarray(sun_direction, dtype=np.float64)
        if direction[1] <= 0:
            return False

        norm = np.linalg.norm(direction)
        direction = direction / norm

        origin = np.array([point.x, self.ray_origin_height, point.z], dtype=np.float64)

        with self._lock.reading():
            return not self._ray_hits(origin, direction)

    def batch_check(self, points: Iterable[Tuple[Hashable, PlanarPoint]],
                    sun_direction: Sequence[float]) -> List[Tuple[Hashable, bool]]:
        """
        Run is_sunlit for many points with one sun direction.

        Args:
            points: (id, PlanarPoint) pairs
            sun_direction: Vector from the ground towards the sun

        Returns:
            List of (id, is_sunlit) in input order
        """
        return [(point_id, self.is_sunlit(point, sun_direction)) for point_id, point in points]

    def _ray_hits(self, origin: np.ndarray, direction: np.ndarray) -> bool:
        """Moller-Trumbore test of one ray against every triangle at once."""
        if self._v0.shape[0] == 0:
            return False

        eps = self.epsilon

        pvec = np.cross(direction, self._edge2)
        det = np.einsum("ij,ij->i", self._edge1, pvec)

        # Rays parallel to a face never hit it
        usable = np.abs(det) > eps
        if not usable.any():
            return False

        inv_det = np.zeros_like(det)
        inv_det[usable] = 1.0 / det[usable]

        tvec = origin - self._v0
        u = np.einsum("ij,ij->i", tvec, pvec) * inv_det

        qvec = np.cross(tvec, self._edge1)
        v = (qvec @ direction) * inv_det
        t = np.einsum("ij,ij->i", self._edge2, qvec) * inv_det

        hits = (
            usable
            & (u >= 0.0) & (u <= 1.0)
            & (v >= 0.0) & (u + v <= 1.0)
            & (t > eps) & (t <= self.max_distance)
        )
        return bool(hits.any())
