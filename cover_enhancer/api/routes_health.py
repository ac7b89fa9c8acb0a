from fastapi import APIRouter, status

from ..core.config import settings

router = APIRouter(prefix="/api")


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict:
    return {"ok": True}


@router.get("/health/detailed", status_code=status.HTTP_200_OK)
async def detailed_health() -> dict:
    """Report which upstreams are configured. Makes no network calls."""
    return {
        "ok": True,
        "spotify": {"configured": settings.spotify_configured},
        "enhance": {
            "configured": bool(settings.CUTOUT_API_KEY),
            "endpoint": settings.CUTOUT_ENHANCE_ENDPOINT,
        },
    }
