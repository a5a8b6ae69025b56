"""
Data loading module for the Sun Terrace project.
Turns already-fetched building and venue data (OpenStreetMap/Overpass JSON,
GeoDataFrames) into the records the sun model consumes.
"""

import math
import re
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import geopandas as gpd
from shapely.geometry import MultiPolygon, Polygon

from config import BUILDING_PARAMS
from geo_projector import GeoPoint, GeoProjector
from solid_builder import Building
from venue_registry import Venue

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"[-+]?\d+(?:[.,]\d+)?")


@dataclass(frozen=True)
class RawBuilding:
    """Building footprint in geodetic coordinates, as (lat, lon) pairs."""
    footprint: Tuple[Tuple[float, float], ...]
    height: float
    building_id: Optional[str] = None

    def to_planar(self, projector: GeoProjector) -> Building:
        return Building(
            footprint=tuple(projector.project_ring(self.footprint)),
            height=self.height,
            building_id=self.building_id,
        )


def _parse_number(value: Any) -> Optional[float]:
    """Parse OSM numeric tags such as '12', '12.5 m' or '12,5'."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMBER.search(str(value))
        if not match:
            return None
        number = float(match.group(0).replace(",", "."))

    if not math.isfinite(number) or number <= 0:
        return None
    return number


def building_height_from_tags(tags: Optional[Dict[str, Any]],
                              default_height: Optional[float] = None,
                              meters_per_level: float = BUILDING_PARAMS["meters_per_level"]) -> float:
    """
    Derive a building height from OSM tags.

    Args:
        tags: OSM tag dict (may be None)
        default_height: Height used when no tag gives a usable value
        meters_per_level: Height of one storey for `building:levels`

    Returns:
        Positive height in meters
    """
    if default_height is None:
        default_height = BUILDING_PARAMS["default_height_m"]
    tags = tags or {}

    height = _parse_number(tags.get("height"))
    if height is not None:
        return height

    levels = _parse_number(tags.get("building:levels"))
    if levels is not None:
        return levels * meters_per_level

    return default_height


def parse_overpass_buildings(osm_data: Dict[str, Any],
                             default_height: Optional[float] = None) -> List[RawBuilding]:
    """
    Extract building footprints from an Overpass JSON response.

    Args:
        osm_data: Parsed Overpass response with an `elements` list
        default_height: Height for buildings without height tags

    Returns:
        List of RawBuilding with at least 3 footprint points
    """
    elements = osm_data.get("elements", [])

    nodes = {}
    for el in elements:
        if el.get("type") == "node" and "lat" in el and "lon" in el:
            nodes[el["id"]] = (float(el["lat"]), float(el["lon"]))

    buildings = []
    missing_nodes = 0

    for el in elements:
        tags = el.get("tags") or {}
        if el.get("type") != "way" or not tags.get("building"):
            continue

        footprint = []
        for node_id in el.get("nodes", []):
            coord = nodes.get(node_id)
            if coord is None:
                missing_nodes += 1
                continue
            footprint.append(coord)

        # Closed ways repeat the first node
        if len(footprint) > 1 and footprint[0] == footprint[-1]:
            footprint.pop()

        if len(footprint) > 2:
            buildings.append(RawBuilding(
                footprint=tuple(footprint),
                height=building_height_from_tags(tags, default_height),
                building_id=str(el.get("id")),
            ))
        else:
            logger.debug(f"Dropping way {el.get('id')} with {len(footprint)} usable nodes")

    if missing_nodes:
        logger.warning(f"{missing_nodes} building nodes were referenced but not present in the response")

    logger.info(f"Parsed {len(buildings)} buildings from {len(elements)} OSM elements")
    return buildings


def _build_address(tags: Dict[str, Any]) -> Optional[str]:
    parts = [tags[key] for key in ("addr:housenumber", "addr:street", "addr:city") if tags.get(key)]
    return " ".join(parts) if parts else None


def parse_overpass_venues(osm_data: Dict[str, Any]) -> List[Venue]:
    """
    Extract venues (cafes, terraces) from an Overpass JSON response.

    Ways are located by their `center`, nodes by their own coordinates.

    Args:
        osm_data: Parsed Overpass response with an `elements` list

    Returns:
        List of Venue without planar positions
    """
    venues = []

    for el in osm_data.get("elements", []):
        tags = el.get("tags") or {}
        if not tags.get("amenity"):
            continue

        center = el.get("center") or {}
        lat = el.get("lat", center.get("lat"))
        lon = el.get("lon", center.get("lon"))
        if lat is None or lon is None:
            logger.warning(f"Skipping venue {el.get('id')}: no coordinates")
            continue

        venues.append(Venue(
            venue_id=el.get("id"),
            position=GeoPoint(float(lat), float(lon)),
            name=tags.get("name", "Unnamed Cafe"),
            metadata={
                "type": tags.get("amenity"),
                "outdoor": tags.get("outdoor_seating") == "yes",
                "cuisine": tags.get("cuisine"),
                "opening_hours": tags.get("opening_hours"),
                "phone": tags.get("phone") or tags.get("contact:phone"),
                "website": tags.get("website") or tags.get("contact:website"),
                "address": _build_address(tags),
                "wheelchair": tags.get("wheelchair"),
            },
        ))

    logger.info(f"Parsed {len(venues)} venues")
    return venues


def buildings_from_geodataframe(buildings: gpd.GeoDataFrame,
                                height_column: str = "height",
                                id_column: Optional[str] = None,
                                default_height: Optional[float] = None) -> List[RawBuilding]:
    """
    Convert a GeoDataFrame of WGS84 building footprints.

    Args:
        buildings: GeoDataFrame with polygon geometries (lon/lat order)
        height_column: Column holding heights in meters
        id_column: Column holding building ids; the index is used if None
        default_height: Height for rows without a usable height

    Returns:
        List of RawBuilding, one per polygon part
    """
    if default_height is None:
        default_height = BUILDING_PARAMS["default_height_m"]

    if buildings.crs is not None and buildings.crs.to_epsg() != 4326:
        buildings = buildings.to_crs(epsg=4326)

    records = []
    for idx, row in buildings.iterrows():
        geom = row.geometry
        if geom is None or geom.is_empty:
            continue

        if isinstance(geom, Polygon):
            parts = [geom]
        elif isinstance(geom, MultiPolygon):
            parts = list(geom.geoms)
        else:
            logger.debug(f"Skipping non-polygon geometry {geom.geom_type} at {idx}")
            continue

        height = _parse_number(row.get(height_column))
        if height is None:
            height = default_height

        building_id = str(row[id_column]) if id_column else str(idx)

        for part in parts:
            coords = list(part.exterior.coords)[:-1]
            footprint = tuple((lat, lon) for lon, lat, *_ in coords)
            if len(footprint) > 2:
                records.append(RawBuilding(footprint=footprint, height=height, building_id=building_id))

    logger.info(f"Converted {len(records)} footprints from GeoDataFrame")
    return records
