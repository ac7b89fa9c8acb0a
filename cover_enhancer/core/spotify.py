"""
Spotify Web API lookups projected into a uniform cover result.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

import httpx

from .config import Settings, settings as default_settings
from .errors import (
    UnsupportedTypeError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamNotFoundError,
)
from .spotify_auth import SpotifyTokenCache
from ..schemas.cover import ResourceImage, ResourceResult

logger = logging.getLogger(__name__)

COVER_SIZE = 640


class ResourceType(str, Enum):
    TRACK = "track"
    ALBUM = "album"
    ARTIST = "artist"
    PLAYLIST = "playlist"
    EPISODE = "episode"
    SHOW = "show"


def _as_int(value) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else None


def only_cover_images(images: Optional[Iterable[dict]]) -> List[ResourceImage]:
    """Keep only the exact 640x640 entries, in upstream order."""
    covers: List[ResourceImage] = []
    for img in images or []:
        if not isinstance(img, dict):
            continue
        url = img.get("url")
        if not isinstance(url, str) or not url:
            continue
        if _as_int(img.get("width")) == COVER_SIZE and _as_int(img.get("height")) == COVER_SIZE:
            covers.append(ResourceImage(url=url, width=COVER_SIZE, height=COVER_SIZE))
    return covers


def _artist_names(data: dict) -> str:
    names = (artist.get("name") for artist in data.get("artists") or [] if isinstance(artist, dict))
    return ", ".join(name for name in names if isinstance(name, str) and name)


def _project_track(data: dict) -> ResourceResult:
    album = data.get("album") or {}
    return ResourceResult(
        title=data.get("name") or "",
        byline=_artist_names(data),
        type=ResourceType.TRACK.value,
        images=only_cover_images(album.get("images")),
    )


def _project_album(data: dict) -> ResourceResult:
    return ResourceResult(
        title=data.get("name") or "",
        byline=_artist_names(data),
        type=ResourceType.ALBUM.value,
        images=only_cover_images(data.get("images")),
    )


def _project_artist(data: dict) -> ResourceResult:
    return ResourceResult(
        title=data.get("name") or "",
        byline="Artist",
        type=ResourceType.ARTIST.value,
        images=only_cover_images(data.get("images")),
    )


def _project_playlist(data: dict) -> ResourceResult:
    owner = (data.get("owner") or {}).get("display_name")
    return ResourceResult(
        title=data.get("name") or "",
        byline=f"By {owner}" if owner else "Playlist",
        type=ResourceType.PLAYLIST.value,
        images=only_cover_images(data.get("images")),
    )


def _project_episode(data: dict) -> ResourceResult:
    show = (data.get("show") or {}).get("name")
    return ResourceResult(
        title=data.get("name") or "",
        byline=f"From {show}" if show else "Episode",
        type=ResourceType.EPISODE.value,
        images=only_cover_images(data.get("images")),
    )


def _project_show(data: dict) -> ResourceResult:
    return ResourceResult(
        title=data.get("name") or "",
        byline="Podcast",
        type=ResourceType.SHOW.value,
        images=only_cover_images(data.get("images")),
    )


# endpoint prefix and projection per resource type
_RESOURCES: Dict[ResourceType, Tuple[str, Callable[[dict], ResourceResult]]] = {
    ResourceType.TRACK: ("/tracks", _project_track),
    ResourceType.ALBUM: ("/albums", _project_album),
    ResourceType.ARTIST: ("/artists", _project_artist),
    ResourceType.PLAYLIST: ("/playlists", _project_playlist),
    ResourceType.EPISODE: ("/episodes", _project_episode),
    ResourceType.SHOW: ("/shows", _project_show),
}


class SpotifyClient:
    def __init__(
        self,
        token_cache: Optional[SpotifyTokenCache] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or default_settings
        self.token_cache = token_cache or SpotifyTokenCache(self.settings, transport=transport)
        self.base_url = self.settings.SPOTIFY_API_BASE_URL.rstrip("/")
        self._transport = transport

    async def _make_request(self, endpoint: str) -> dict:
        """Make authenticated GET request to the Spotify Web API."""
        access_token = await self.token_cache.get_token()
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.get(f"{self.base_url}{endpoint}", headers=headers)
        except httpx.TimeoutException as exc:
            raise UpstreamError("Spotify API request timed out", details=str(exc)) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError("Spotify API request failed", details=str(exc)) from exc

        if response.is_error:
            status = response.status_code
            message = f"Spotify API error: {status}"
            logger.warning("[spotify] GET %s -> %s", endpoint, status)
            if status == 404:
                raise UpstreamNotFoundError(message, upstream_status=status, details=response.text)
            if status in (401, 403):
                if status == 401:
                    self.token_cache.invalidate()
                raise UpstreamAuthError(message, upstream_status=status, details=response.text)
            raise UpstreamError(message, upstream_status=status, details=response.text)

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("Spotify API returned invalid JSON", upstream_status=response.status_code) from exc

    async def fetch(self, resource_type: str, resource_id: str) -> ResourceResult:
        """Look up a resource and project it to {title, byline, type, images}."""
        try:
            kind = ResourceType(resource_type)
        except ValueError:
            raise UnsupportedTypeError(resource_type) from None

        path, project = _RESOURCES[kind]
        data = await self._make_request(f"{path}/{quote(resource_id, safe='')}")
        return project(data if isinstance(data, dict) else {})


# Global client instance
spotify_client = SpotifyClient()


def get_spotify_client() -> SpotifyClient:
    return spotify_client
