"""
Enhance pipeline: download a cover, send it to Cutout.pro, re-encode to 3000x3000 JPEG.

Each stage fails with its own error type so the client can tell a bad source
URL apart from a failing provider.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Optional, Tuple

import httpx
from PIL import Image, ImageOps, UnidentifiedImageError

from .config import Settings, settings as default_settings
from .errors import (
    ConfigError,
    PayloadTooLargeError,
    ReencodeError,
    SourceFetchError,
    TransformError,
    ValidationError,
)
from ..schemas.cover import EnhanceRequest

logger = logging.getLogger(__name__)

TARGET_SIZE = 3000
DEFAULT_QUALITY = 95
DEFAULT_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class EnhancedImage:
    content: bytes
    filename: str


def resolve_quality(value: Any) -> int:
    """Missing, zero or non-numeric values fall back to 95; the rest are clamped to [1, 100]."""
    if isinstance(value, int):
        # bools and arbitrarily large ints
        return max(1, min(100, int(value))) if value else DEFAULT_QUALITY
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        number = 0.0
    if number != number or not number:  # NaN or zero
        number = DEFAULT_QUALITY
    return int(max(1, min(100, number)))


def extension_for(content_type: str) -> str:
    return "png" if "png" in content_type.lower() else "jpg"


def reencode(data: bytes, quality: int = DEFAULT_QUALITY, progressive: bool = False) -> bytes:
    """Cover-fit ``data`` to exactly TARGET_SIZE x TARGET_SIZE and encode as JPEG (4:4:4)."""
    try:
        with Image.open(BytesIO(data)) as src:
            src.load()
            image = src.convert("RGB") if src.mode != "RGB" else src.copy()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ReencodeError("Enhanced image could not be decoded", details=str(exc)) from exc

    fitted = ImageOps.fit(image, (TARGET_SIZE, TARGET_SIZE), method=Image.LANCZOS)
    out = BytesIO()
    fitted.save(
        out,
        "JPEG",
        quality=quality,
        progressive=progressive,
        subsampling=0,
    )
    return out.getvalue()


class ImageEnhancer:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or default_settings
        self._transport = transport

    async def _read_limited(self, response: httpx.Response) -> bytes:
        limit = self.settings.MAX_IMAGE_BYTES
        chunks = []
        received = 0
        async for chunk in response.aiter_bytes():
            received += len(chunk)
            if received > limit:
                raise PayloadTooLargeError(f"Image exceeds {limit} bytes")
            chunks.append(chunk)
        return b"".join(chunks)

    async def fetch_source(self, image_url: str) -> Tuple[bytes, str]:
        """Download the source image; returns (bytes, content type)."""
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", image_url) as response:
                    if response.is_error:
                        await response.aread()
                        raise SourceFetchError(
                            f"Failed to fetch source image ({response.status_code})",
                            upstream_status=response.status_code,
                            details=response.text,
                        )
                    content = await self._read_limited(response)
                    content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        except PayloadTooLargeError as exc:
            raise SourceFetchError(exc.message) from exc
        except httpx.TimeoutException as exc:
            raise SourceFetchError("Timed out fetching source image", details=str(exc)) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SourceFetchError("Failed to fetch source image", details=str(exc)) from exc
        return content, content_type

    async def transform(self, content: bytes, content_type: str, endpoint: str, api_key: str) -> bytes:
        """Upload the image to the enhancement provider and return its binary response."""
        files = {"file": (f"input.{extension_for(content_type)}", content, content_type)}
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.ENHANCE_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                async with client.stream("POST", endpoint, headers={"APIKEY": api_key}, files=files) as response:
                    if response.is_error:
                        await response.aread()
                        raise TransformError(
                            f"Cutout.pro error: {response.status_code}",
                            upstream_status=response.status_code,
                            details=response.text,
                        )
                    return await self._read_limited(response)
        except PayloadTooLargeError as exc:
            raise TransformError(exc.message) from exc
        except httpx.TimeoutException as exc:
            raise TransformError("Cutout.pro request timed out", details=str(exc)) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransformError("Cutout.pro request failed", details=str(exc)) from exc

    async def enhance(self, req: EnhanceRequest) -> EnhancedImage:
        if not req.image_url:
            raise ValidationError("Missing imageUrl")
        api_key = self.settings.CUTOUT_API_KEY
        if not api_key:
            raise ConfigError("Missing CUTOUT_API_KEY in .env")

        quality = resolve_quality(req.quality)
        progressive = bool(req.progressive)
        endpoint = req.endpoint or self.settings.CUTOUT_ENHANCE_ENDPOINT

        content, content_type = await self.fetch_source(req.image_url)
        logger.info("[enhance] fetched %s bytes (%s) from %s", len(content), content_type, req.image_url)

        enhanced = await self.transform(content, content_type, endpoint, api_key)
        logger.info("[enhance] provider returned %s bytes", len(enhanced))

        resized = await asyncio.to_thread(reencode, enhanced, quality, progressive)
        logger.info("[enhance] encoded %sx%s jpeg q=%s progressive=%s", TARGET_SIZE, TARGET_SIZE, quality, progressive)
        filename = f"enhanced_{TARGET_SIZE}x{TARGET_SIZE}_{int(time.time() * 1000)}.jpg"
        return EnhancedImage(content=resized, filename=filename)


# Global enhancer instance
image_enhancer = ImageEnhancer()


def get_image_enhancer() -> ImageEnhancer:
    return image_enhancer
