"""
Tests for the Spotify access token cache.
"""

import asyncio
import base64
from urllib.parse import parse_qs

import httpx
import pytest

from cover_enhancer.core.errors import ConfigError, UpstreamAuthError, UpstreamError
from cover_enhancer.core.spotify_auth import SpotifyTokenCache


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def token_transport(calls, expires_in=3600, status_code=200, delay=0.0):
    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if delay:
            await asyncio.sleep(delay)
        if status_code != 200:
            return httpx.Response(status_code, text="invalid_client")
        payload = {"access_token": f"token-{len(calls)}", "token_type": "Bearer"}
        if expires_in is not None:
            payload["expires_in"] = expires_in
        return httpx.Response(200, json=payload)
    return httpx.MockTransport(handler)


def test_token_request_uses_basic_auth_and_client_credentials(make_settings):
    calls = []
    cache = SpotifyTokenCache(make_settings(), transport=token_transport(calls), clock=FakeClock())

    assert asyncio.run(cache.get_token()) == "token-1"

    request = calls[0]
    assert request.method == "POST"
    assert str(request.url) == "https://accounts.spotify.com/api/token"
    expected = base64.b64encode(b"client-id:client-secret").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert parse_qs(request.content.decode()) == {"grant_type": ["client_credentials"]}


def test_token_is_reused_within_validity_window(make_settings):
    calls = []
    clock = FakeClock()
    cache = SpotifyTokenCache(make_settings(), transport=token_transport(calls), clock=clock)

    async def runner():
        first = await cache.get_token()
        clock.now += 3600 - 31
        second = await cache.get_token()
        return first, second

    assert asyncio.run(runner()) == ("token-1", "token-1")
    assert len(calls) == 1


def test_token_is_refreshed_inside_safety_margin(make_settings):
    calls = []
    clock = FakeClock()
    cache = SpotifyTokenCache(make_settings(), transport=token_transport(calls), clock=clock)

    async def runner():
        await cache.get_token()
        clock.now += 3600 - 30
        return await cache.get_token()

    assert asyncio.run(runner()) == "token-2"
    assert len(calls) == 2
    assert cache.token.expires_at == clock.now + 3600


def test_missing_expires_in_defaults_to_one_hour(make_settings):
    clock = FakeClock()
    cache = SpotifyTokenCache(make_settings(), transport=token_transport([], expires_in=None), clock=clock)

    asyncio.run(cache.get_token())

    assert cache.token.expires_at == clock.now + 3600


def test_concurrent_expired_requests_share_one_refresh(make_settings):
    calls = []
    cache = SpotifyTokenCache(
        make_settings(), transport=token_transport(calls, delay=0.01), clock=FakeClock()
    )

    async def runner():
        return await asyncio.gather(*(cache.get_token() for _ in range(5)))

    assert asyncio.run(runner()) == ["token-1"] * 5
    assert len(calls) == 1


def test_missing_credentials_raise_config_error_without_network(make_settings):
    calls = []
    cache = SpotifyTokenCache(
        make_settings(SPOTIFY_CLIENT_ID=None, SPOTIFY_CLIENT_SECRET=None),
        transport=token_transport(calls),
    )

    with pytest.raises(ConfigError) as exc_info:
        asyncio.run(cache.get_token())

    assert exc_info.value.status_code == 400
    assert "SPOTIFY_CLIENT_ID" in exc_info.value.message
    assert calls == []


def test_rejected_exchange_raises_upstream_auth_error(make_settings):
    cache = SpotifyTokenCache(make_settings(), transport=token_transport([], status_code=400))

    with pytest.raises(UpstreamAuthError) as exc_info:
        asyncio.run(cache.get_token())

    assert exc_info.value.upstream_status == 400
    assert exc_info.value.details == "invalid_client"
    assert cache.token is None


def test_token_endpoint_timeout_is_reported(make_settings):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    cache = SpotifyTokenCache(make_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError, match="timed out"):
        asyncio.run(cache.get_token())


def test_invalidate_forces_refresh(make_settings):
    calls = []
    cache = SpotifyTokenCache(make_settings(), transport=token_transport(calls), clock=FakeClock())

    async def runner():
        await cache.get_token()
        cache.invalidate()
        return await cache.get_token()

    assert asyncio.run(runner()) == "token-2"


def test_non_numeric_expires_in_defaults_to_one_hour(make_settings):
    clock = FakeClock()
    cache = SpotifyTokenCache(make_settings(), transport=token_transport([], expires_in="soon"), clock=clock)

    assert asyncio.run(cache.get_token()) == "token-1"
    assert cache.token.expires_at == clock.now + 3600
