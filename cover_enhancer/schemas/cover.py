"""
Request/response schemas for the cover and enhance endpoints.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResourceImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    width: int
    height: int


class ResourceResult(BaseModel):
    """Uniform projection of a Spotify resource."""
    title: str = ""
    byline: str = ""
    type: str
    images: List[ResourceImage] = Field(default_factory=list)


class CoverResponse(ResourceResult):
    id: str


class EnhanceRequest(BaseModel):
    """Body of POST /api/enhance. Quality is coerced and clamped by the pipeline."""
    model_config = ConfigDict(populate_by_name=True)

    image_url: Optional[str] = Field(None, alias="imageUrl")
    quality: Optional[Any] = None
    progressive: Optional[Any] = False
    endpoint: Optional[str] = None
