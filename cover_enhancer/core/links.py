"""
Parse Spotify links and URIs into a (type, id) pair.

Accepted forms:
    spotify:track:3AJwUDP919kvQ9QcozQPxg
    https://open.spotify.com/album/1DFixLWuPkv3KT3TnV35m3?si=abc

The resource type is not checked here; unknown types are rejected later by
the Spotify client.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from urllib.parse import urlsplit

_URI_PATTERN = re.compile(r"^spotify:([a-z_]+):([A-Za-z0-9]+)$", re.IGNORECASE | re.ASCII)
_HOST_MARKER = ".spotify."


@dataclass(frozen=True)
class ParsedLink:
    resource_type: str
    resource_id: str


def _parse_uri(text: str) -> Optional[ParsedLink]:
    match = _URI_PATTERN.match(text)
    if not match:
        return None
    return ParsedLink(resource_type=match.group(1).lower(), resource_id=match.group(2))


def _parse_url(text: str) -> Optional[ParsedLink]:
    try:
        parts = urlsplit(text)
        hostname = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not hostname or _HOST_MARKER not in hostname:
        return None
    segments = [segment for segment in parts.path.split("/") if segment]
    if len(segments) < 2:
        return None
    resource_id = segments[1].split("?")[0]
    if not resource_id:
        return None
    return ParsedLink(resource_type=segments[0].lower(), resource_id=resource_id)


_PARSERS: Tuple[Callable[[str], Optional[ParsedLink]], ...] = (_parse_uri, _parse_url)


def parse_link(text: Optional[str]) -> Optional[ParsedLink]:
    """Return the first successful parse of ``text``, or None if unrecognized."""
    if not text:
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    for parser in _PARSERS:
        parsed = parser(trimmed)
        if parsed is not None:
            return parsed
    return None
