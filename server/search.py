"""
Zip code radius search route.

Validates the zip code, geocodes it and reports how many cached pins lie
within the search radius. A search started after this one supersedes it: its
late result is discarded instead of moving the map or the overlay.
"""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from logic.validation import ZipValidationError, validate_zip
from server import geocode
from server.broadcast import publish
from server.state import map_state

logger = logging.getLogger(__name__)

router = APIRouter()


class SearchRequest(BaseModel):
    query: str = ""


@router.post("/api/search")
async def search(data: SearchRequest):
    """Search for pins within 50 miles of a zip code.

    Args:
        data: Request with the raw zip code query.

    Returns:
        Search result with the resolved location, matching pin ids and the
        user-facing message. Zero matching pins is a normal result.

    Raises:
        HTTPException: 400 for an invalid zip code, 404 if the zip code is not
            found, 409 if a newer search superseded this one, 502 if the
            geocoding service fails.
    """
    try:
        zip_code = validate_zip(data.query)
    except ZipValidationError as e:
        raise HTTPException(400, str(e))

    generation = map_state.begin_search()

    try:
        location = await geocode.geocode(zip_code)
    except geocode.GeocodeError:
        logger.exception("Search error for %s", zip_code)
        raise HTTPException(502, "Search failed. Please try again.")

    if location is None:
        raise HTTPException(404, f"Zip code {zip_code} not found")

    result = map_state.finish_search(
        generation, zip_code, location["lat"], location["lng"], location["display"]
    )
    if result is None:
        raise HTTPException(409, "Search superseded by a newer search")

    await publish(map_state.search_payload(result))
    return result.to_dict()
