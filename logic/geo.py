"""
Great-circle distance and radius search.

Distances are in miles. The search radius and earth radius are fixed values,
not settings.
"""

import math
from typing import Any, Dict, Iterable, List

EARTH_RADIUS_MILES = 3959
SEARCH_RADIUS_MILES = 50
METERS_PER_MILE = 1609.34


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Calculate the great-circle distance between two points.

    Args:
        lat1: Latitude of the first point in degrees.
        lng1: Longitude of the first point in degrees.
        lat2: Latitude of the second point in degrees.
        lng2: Longitude of the second point in degrees.

    Returns:
        Distance in miles.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def is_in_range(
        lat: float, lng: float, pin: Dict[str, Any], radius_miles: float = SEARCH_RADIUS_MILES
) -> bool:
    """Check whether a pin lies within radius_miles of (lat, lng), boundary included."""
    return haversine_miles(lat, lng, pin["lat"], pin["lng"]) <= radius_miles


def find_pins_in_radius(
        lat: float,
        lng: float,
        pins: Iterable[Dict[str, Any]],
        radius_miles: float = SEARCH_RADIUS_MILES,
) -> List[Dict[str, Any]]:
    """Find all pins within a radius of a point.

    Args:
        lat: Latitude of the search center in degrees.
        lng: Longitude of the search center in degrees.
        pins: Pins to search.
        radius_miles: Search radius in miles.

    Returns:
        List of pins whose distance from the center is <= radius_miles,
        in their original order.
    """
    return [pin for pin in pins if is_in_range(lat, lng, pin, radius_miles)]


def search_circle(lat: float, lng: float, radius_miles: float = SEARCH_RADIUS_MILES) -> Dict[str, Any]:
    """Build the radius overlay drawn around a search location."""
    return {
        "center": [lat, lng],
        "radius": radius_miles * METERS_PER_MILE,
        "color": "#1e3a5f",
        "fill_color": "#1e3a5f",
        "fill_opacity": 0.1,
        "weight": 2,
        "dash_array": "5, 5",
    }


def format_search_message(zip_code: str, label: str, count: int) -> str:
    """Build the user-facing summary of a search result.

    Args:
        zip_code: The zip code that was searched.
        label: Human-readable place label from the geocoder.
        count: Number of pins in range.

    Returns:
        Message string.
    """
    prefix = f"✓ Found {zip_code} ({label}) — "
    if count == 0:
        return f"{prefix}No pins within {SEARCH_RADIUS_MILES} miles"
    plural = "" if count == 1 else "s"
    return f"{prefix}{count} pin{plural} within {SEARCH_RADIUS_MILES} miles"
