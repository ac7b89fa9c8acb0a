"""
Enhance endpoint: returns the enhanced cover as a 3000x3000 JPEG download.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ..core.enhance import ImageEnhancer, get_image_enhancer
from ..schemas.cover import EnhanceRequest

router = APIRouter(prefix="/api", tags=["enhance"])


@router.post(
    "/enhance",
    response_class=Response,
    responses={200: {"content": {"image/jpeg": {}}}},
)
async def enhance_cover(
    body: EnhanceRequest,
    enhancer: ImageEnhancer = Depends(get_image_enhancer),
) -> Response:
    result = await enhancer.enhance(body)
    return Response(
        content=result.content,
        media_type="image/jpeg",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
