"""Zip code geocoding via Nominatim.

Resolves a US zip code to coordinates and a short place label.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from logic import config

logger = logging.getLogger(__name__)


class GeocodeError(Exception):
    """Raised when the geocoding service cannot be reached or answers garbage."""


def short_label(display_name: str) -> str:
    """Reduce a Nominatim display name to its first two parts (city, state)."""
    parts = display_name.split(",")
    return ",".join(parts[:2]).strip()


async def geocode(zip_code: str) -> Optional[dict]:
    """Look up a zip code.

    Args:
        zip_code: Validated 5-digit zip code.

    Returns:
        Dictionary with lat, lng and display label, or None if the service
        returned no match or a non-success status.

    Raises:
        GeocodeError: If the request fails or the response can't be parsed.
    """
    params = {
        "q": f"{zip_code}, USA",
        "format": "json",
        "limit": "1",
        "countrycodes": "us",
    }
    headers = {"User-Agent": config.GEOCODER_USER_AGENT}
    timeout = aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT_SECONDS)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(config.NOMINATIM_URL, params=params, headers=headers) as resp:
                if resp.status != 200:
                    logger.warning("Geocoder returned %s for %s", resp.status, zip_code)
                    return None
                results = await resp.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise GeocodeError(f"Geocoding request failed: {e}") from e
    except ValueError as e:
        raise GeocodeError(f"Invalid geocoder response: {e}") from e

    if not results:
        return None

    result = results[0]
    try:
        return {
            "lat": float(result["lat"]),
            "lng": float(result["lon"]),
            "display": short_label(result.get("display_name", "")),
        }
    except (KeyError, TypeError, ValueError) as e:
        raise GeocodeError(f"Invalid geocoder result: {e}") from e
