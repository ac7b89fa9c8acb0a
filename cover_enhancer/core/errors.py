"""
Error taxonomy shared by the resolver, the Spotify client and the enhance pipeline.

Every error knows the HTTP status it maps to and renders as ``{error, details?}``.
"""

from typing import Any, Optional


class CoverServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Any = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ConfigError(CoverServiceError):
    """A required secret or setting is missing."""
    status_code = 400


class ValidationError(CoverServiceError):
    """User input could not be parsed or is not supported."""
    status_code = 400


class UnsupportedTypeError(ValidationError):
    def __init__(self, resource_type: str):
        super().__init__(f"Unsupported type: {resource_type}")
        self.resource_type = resource_type


class PayloadTooLargeError(CoverServiceError):
    status_code = 413


class _UpstreamStatusError(CoverServiceError):
    def __init__(self, message: str, upstream_status: Optional[int] = None, details: Any = None):
        super().__init__(message, details=details)
        self.upstream_status = upstream_status


class UpstreamError(_UpstreamStatusError):
    """The Spotify Web API (or its token endpoint) failed."""


class UpstreamAuthError(UpstreamError):
    pass


class UpstreamNotFoundError(UpstreamError):
    pass


class SourceFetchError(_UpstreamStatusError):
    """The source image could not be downloaded."""


class TransformError(_UpstreamStatusError):
    """The enhancement provider rejected or failed the request."""
    status_code = 502


class ReencodeError(CoverServiceError):
    """The transformed payload is not a decodable image."""
