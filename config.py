"""
Configuration file for the Sun Terrace project.
Contains physical constants, model parameters and environment overrides.
"""

import os
import logging
from typing import Dict, Any

logger = logging.getLogger(__name__)

# Local tangent-plane projection
GEO_PARAMS = {
    "earth_radius_m": 6371000.0,
}

# Ray casting against building solids
OCCLUSION_PARAMS = {
    "ray_origin_height_m": 0.75,   # terrace table height
    "max_ray_distance_m": 2000.0,  # matches the sun placement distance
    "ray_epsilon": 1e-9,
}

# Building extraction
BUILDING_PARAMS = {
    "default_height_m": 10.0,  # ~3 stories when no tags are present
    "meters_per_level": 3.0,
    "min_area_m2": 1e-6,
}

# Forward search for the next sun/shade transition
PREDICTION_PARAMS = {
    "sunny_step_minutes": 10,   # finer: losing the sun is the urgent case
    "shaded_step_minutes": 15,
    "horizon_minutes": 480,     # 8 hours
}

# Sun placement for external renderers
SUN_PARAMS = {
    "light_distance_m": 1000.0,
}

def get_env_overrides() -> Dict[str, Any]:
    """Get parameter overrides from environment variables."""
    overrides = {}

    default_height = os.getenv("SUNTERRACE_DEFAULT_HEIGHT_M")
    if default_height:
        try:
            overrides["default_height_m"] = float(default_height)
        except ValueError:
            logger.warning(f"Ignoring invalid SUNTERRACE_DEFAULT_HEIGHT_M={default_height!r}")

    horizon = os.getenv("SUNTERRACE_HORIZON_MINUTES")
    if horizon:
        try:
            overrides["horizon_minutes"] = int(horizon)
        except ValueError:
            logger.warning(f"Ignoring invalid SUNTERRACE_HORIZON_MINUTES={horizon!r}")

    overrides["log_level"] = os.getenv("SUNTERRACE_LOG_LEVEL", "INFO").upper()
    return overrides

def apply_env_overrides() -> Dict[str, Any]:
    """Merge environment overrides into the parameter tables."""
    overrides = get_env_overrides()
    if "default_height_m" in overrides:
        BUILDING_PARAMS["default_height_m"] = overrides["default_height_m"]
    if "horizon_minutes" in overrides:
        PREDICTION_PARAMS["horizon_minutes"] = overrides["horizon_minutes"]
    return overrides

def validate_config() -> bool:
    """Validate that all numeric parameters are usable."""
    valid = True

    for table_name, table in (
        ("GEO_PARAMS", GEO_PARAMS),
        ("OCCLUSION_PARAMS", OCCLUSION_PARAMS),
        ("BUILDING_PARAMS", BUILDING_PARAMS),
        ("PREDICTION_PARAMS", PREDICTION_PARAMS),
        ("SUN_PARAMS", SUN_PARAMS),
    ):
        for key, value in table.items():
            if not isinstance(value, (int, float)) or value <= 0:
                logger.warning(f"Invalid {table_name}[{key!r}] = {value!r}; must be positive")
                valid = False

    return valid
