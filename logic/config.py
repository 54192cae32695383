"""
Configuration management module.

This module reads the application settings from the environment (optionally
populated from a .env file) and exposes the map defaults served to clients.
"""

import logging
import os
import sys
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
STATIC_DIR = os.path.join(BASE_DIR, "static")

# Supabase project (PostgREST, GoTrue and Realtime share one base URL)
SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

# Geocoding
NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "UCN-Deployment-Map")

HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
REALTIME_RECONNECT_SECONDS = float(os.getenv("REALTIME_RECONNECT_SECONDS", "5"))
ENABLE_REALTIME = os.getenv("ENABLE_REALTIME", "true").lower() in ("1", "true", "yes")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./deployment_map.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Map defaults (centered on Louisiana)
MAP_CENTER = (30.9843, -91.9623)
MAP_ZOOM = 6
MAP_MIN_ZOOM = 4
MAP_MAX_ZOOM = 18
SEARCH_ZOOM = 9

TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a>'
)

# Call-to-action links shown in pin popups
DONATE_URL = os.getenv("DONATE_URL", "https://www.unitedcajunnavy.org/donate")
VOLUNTEER_URL = os.getenv("VOLUNTEER_URL", "https://www.unitedcajunnavy.org/volunteer")
REQUEST_HELP_URL = os.getenv(
    "REQUEST_HELP_URL", "https://www.unitedcajunnavy.org/request-help"
)


def get_map_config() -> Dict[str, Any]:
    """Get the map settings clients need to initialise the map.

    Returns:
        Dictionary with center, zoom limits and tile layer settings.
    """
    return {
        "center": list(MAP_CENTER),
        "zoom": MAP_ZOOM,
        "min_zoom": MAP_MIN_ZOOM,
        "max_zoom": MAP_MAX_ZOOM,
        "tile_url": TILE_URL,
        "tile_attribution": TILE_ATTRIBUTION,
    }


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging for the application.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)
