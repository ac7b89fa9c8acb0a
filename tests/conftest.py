from io import BytesIO

import pytest
from PIL import Image

from cover_enhancer.core.config import Settings


@pytest.fixture
def make_settings():
    """Settings built from explicit values only (no .env file)."""
    def _make(**overrides):
        values = {
            "SPOTIFY_CLIENT_ID": "client-id",
            "SPOTIFY_CLIENT_SECRET": "client-secret",
            "CUTOUT_API_KEY": "cutout-key",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


@pytest.fixture
def image_bytes():
    """Encode a solid-color test image in memory."""
    def _make(width=640, height=640, fmt="JPEG", mode="RGB"):
        color = (200, 30, 30, 255) if mode == "RGBA" else (200, 30, 30)
        buf = BytesIO()
        Image.new(mode, (width, height), color[: len(mode)]).save(buf, fmt)
        return buf.getvalue()
    return _make
