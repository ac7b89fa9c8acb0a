"""
Cover lookup endpoint: Spotify link/URI -> 640x640 cover images.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.errors import ValidationError
from ..core.links import parse_link
from ..core.spotify import SpotifyClient, get_spotify_client
from ..schemas.cover import CoverResponse

router = APIRouter(prefix="/api", tags=["cover"])
logger = logging.getLogger(__name__)


@router.get("/cover", response_model=CoverResponse)
async def get_cover(
    url: Optional[str] = Query(None, description="Spotify link or URI"),
    spotify: SpotifyClient = Depends(get_spotify_client),
) -> CoverResponse:
    parsed = parse_link(url or "")
    if not parsed:
        raise ValidationError("Invalid or unsupported Spotify link/URI.")

    result = await spotify.fetch(parsed.resource_type, parsed.resource_id)
    sizes = ", ".join(f"{img.width}x{img.height}" for img in result.images)
    logger.info("[cover] type=%s id=%s sizes=[%s]", result.type, parsed.resource_id, sizes)

    return CoverResponse(id=parsed.resource_id, **result.model_dump())
