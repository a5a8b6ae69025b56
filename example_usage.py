"""
Example usage of the Sun Terrace system.
Runs the sun exposure pipeline on a small hand-made neighbourhood, without any network access.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from config import apply_env_overrides, validate_config
from data_loaders import parse_overpass_buildings, parse_overpass_venues
from exposure_service import SunExposureService
from geo_projector import GeoProjector, Origin
from venue_registry import Venue

logger = logging.getLogger(__name__)

# Leidseplein, Amsterdam
CENTER = (52.3641, 4.8828)


def _square_way(way_id: int, node_start: int, projector: GeoProjector,
                x: float, z: float, size: float, tags: Dict) -> List[Dict]:
    """A square building way plus its nodes, centred at planar (x, z)."""
    half = size / 2
    corners = [(x - half, z - half), (x + half, z - half), (x + half, z + half), (x - half, z + half)]

    elements = []
    node_ids = []
    for i, (cx, cz) in enumerate(corners):
        geo = projector.to_geo(cx, cz)
        node_id = node_start + i
        node_ids.append(node_id)
        elements.append({"type": "node", "id": node_id, "lat": geo.lat, "lon": geo.lon})

    elements.append({
        "type": "way",
        "id": way_id,
        "nodes": node_ids + [node_ids[0]],
        "tags": dict(tags, building="yes"),
    })
    return elements


def build_sample_area() -> Dict:
    """Overpass-style response with a few buildings and terraces around CENTER."""
    projector = GeoProjector(Origin(*CENTER))

    elements = []
    elements += _square_way(1001, 1, projector, 0.0, -25.0, 20.0, {"height": "30"})
    elements += _square_way(1002, 11, projector, 40.0, 10.0, 15.0, {"building:levels": "5"})
    elements += _square_way(1003, 21, projector, -35.0, 30.0, 25.0, {})

    terraces = [
        (2001, "Café Zon", 0.0, -5.0),
        (2002, "Terras Oost", 25.0, 10.0),
        (2003, "Het Pleintje", -10.0, 60.0),
    ]
    for venue_id, name, x, z in terraces:
        geo = projector.to_geo(x, z)
        elements.append({
            "type": "node",
            "id": venue_id,
            "lat": geo.lat,
            "lon": geo.lon,
            "tags": {"amenity": "cafe", "name": name, "outdoor_seating": "yes"},
        })

    return {"elements": elements}


def print_summary(venues: Iterable[Venue]):
    """Print one line per venue; venues never evaluated are not reported as shaded."""
    print("📋 Terrace Summary:")
    for venue in venues:
        state = venue.sun_state
        if venue.is_sunny is None:
            print(f"   ❔ {venue.name}: not computed yet")
        elif venue.is_sunny:
            print(f"   ☀️  {venue.name}: sunny, shade at {state.shades_at}")
        else:
            print(f"   🌥️  {venue.name}: shaded, sun at {state.becomes_sunny_at}")
    print()


def run_local_example(at: Optional[datetime] = None):
    """Run the sun exposure example locally."""
    try:
        print("☀️  Sun Terrace - Local Example")
        print("=" * 50)

        if not validate_config():
            logger.warning("Configuration validation failed, but continuing...")

        at = at or datetime(2024, 6, 21, 15, 0, tzinfo=timezone.utc)
        print(f"📍 Center: Leidseplein {CENTER}")
        print(f"⏰ Time: {at.isoformat()}")
        print()

        # Step 1: Parse area data
        print("📊 Step 1: Parsing area data...")
        osm_data = build_sample_area()
        buildings = parse_overpass_buildings(osm_data)
        venues = parse_overpass_venues(osm_data)
        print(f"✅ Parsed {len(buildings)} buildings")
        print(f"✅ Parsed {len(venues)} venues")
        print()

        # Step 2: Build the occlusion model
        print("🔧 Step 2: Building occlusion model...")
        service = SunExposureService(*CENTER)
        service.load_venues(venues)
        solids = service.load_buildings(buildings)
        print(f"✅ {solids} occlusion solids, {service.occlusion.face_count} faces")
        print()

        # Step 3: Sun times
        print("🌅 Step 3: Sun times...")
        times = service.sun_times(at)
        print(f"   Sunrise:     {times.sunrise}")
        print(f"   Solar noon:  {times.solar_noon}")
        print(f"   Golden hour: {times.golden_hour}")
        print(f"   Sunset:      {times.sunset}")
        print()

        # Step 4: Exposure and predictions
        print("🔄 Step 4: Computing exposure...")
        result = service.refresh(at=at)
        print(f"✅ Sun altitude {result.sun.altitude_deg:.1f}°, azimuth {result.sun.azimuth_deg:.1f}° (0 = south)")
        print()

        print_summary(service.registry)

        return result

    except Exception as e:
        logger.error(f"Error in local example: {e}")
        print(f"❌ Error: {e}")
        return None


def main():
    """Main function to run the example."""
    overrides = apply_env_overrides()
    logging.basicConfig(level=getattr(logging, overrides["log_level"], logging.INFO))

    try:
        run_local_example()
    except KeyboardInterrupt:
        print("\n\n⏹️  Example interrupted by user")


if __name__ == "__main__":
    main()
