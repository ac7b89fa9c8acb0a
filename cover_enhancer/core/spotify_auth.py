"""
Spotify access token cache (Client Credentials flow).

Tokens are refreshed lazily: a request that finds the cached token expired
performs the exchange. Concurrent requests wait on the same lock, so only one
refresh is in flight at a time and the waiters reuse its result.
"""

import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from .config import Settings, settings as default_settings
from .errors import ConfigError, UpstreamAuthError, UpstreamError

logger = logging.getLogger(__name__)

EXPIRY_BUFFER_SECONDS = 30
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


@dataclass(frozen=True)
class Token:
    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return self.expires_at - EXPIRY_BUFFER_SECONDS > now


class SpotifyTokenCache:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or default_settings
        self._transport = transport
        self._clock = clock
        self._token: Optional[Token] = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> Optional[Token]:
        return self._token

    def invalidate(self) -> None:
        self._token = None

    def _cached(self) -> Optional[str]:
        token = self._token
        if token and token.is_valid(self._clock()):
            return token.value
        return None

    async def get_token(self) -> str:
        """Return a valid bearer token, exchanging client credentials if needed."""
        cached = self._cached()
        if cached:
            return cached
        async with self._lock:
            # Another waiter may have refreshed while we were blocked.
            cached = self._cached()
            if cached:
                return cached
            self._token = await self._request_token()
            return self._token.value

    async def _request_token(self) -> Token:
        client_id = self.settings.SPOTIFY_CLIENT_ID
        client_secret = self.settings.SPOTIFY_CLIENT_SECRET
        if not client_id or not client_secret:
            raise ConfigError("Missing SPOTIFY_CLIENT_ID or SPOTIFY_CLIENT_SECRET in .env")

        auth_string = f"{client_id}:{client_secret}"
        auth_base64 = base64.b64encode(auth_string.encode("utf-8")).decode("utf-8")
        headers = {
            "Authorization": f"Basic {auth_base64}",
            "Content-Type": "application/x-www-form-urlencoded",
        }
        data = {"grant_type": "client_credentials"}

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(self.settings.SPOTIFY_TOKEN_URL, headers=headers, data=data)
        except httpx.TimeoutException as exc:
            raise UpstreamError("Token request timed out", details=str(exc)) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError("Token request failed", details=str(exc)) from exc

        if response.is_error:
            raise UpstreamAuthError(
                f"Token request failed: {response.status_code}",
                upstream_status=response.status_code,
                details=response.text,
            )

        try:
            token_data = response.json()
            access_token = token_data["access_token"]
        except (ValueError, KeyError, TypeError) as exc:
            raise UpstreamAuthError(
                "Token response did not include an access token",
                upstream_status=response.status_code,
                details=response.text,
            ) from exc

        try:
            lifetime = float(token_data.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS)
        except (TypeError, ValueError):
            lifetime = float(DEFAULT_TOKEN_LIFETIME_SECONDS)
        token = Token(value=access_token, expires_at=self._clock() + lifetime)
        logger.info("[spotify] token refreshed, expires in %ss", lifetime)
        return token
