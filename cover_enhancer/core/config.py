from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Load env from .env file
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Spotify (Client Credentials flow)
    SPOTIFY_CLIENT_ID: Optional[str] = None
    SPOTIFY_CLIENT_SECRET: Optional[str] = None
    SPOTIFY_TOKEN_URL: str = "https://accounts.spotify.com/api/token"
    SPOTIFY_API_BASE_URL: str = "https://api.spotify.com/v1"

    # Cutout.pro photo enhancer
    CUTOUT_API_KEY: Optional[str] = None
    CUTOUT_ENHANCE_ENDPOINT: str = "https://www.cutout.pro/api/v1/photoEnhance"

    # Outbound calls
    HTTP_TIMEOUT_SECONDS: float = 10.0
    ENHANCE_TIMEOUT_SECONDS: float = 60.0

    # Payload limits
    MAX_REQUEST_BYTES: int = 2 * 1024 * 1024
    MAX_IMAGE_BYTES: int = 25 * 1024 * 1024

    # Server
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"
    API_HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    @property
    def spotify_configured(self) -> bool:
        return bool(self.SPOTIFY_CLIENT_ID and self.SPOTIFY_CLIENT_SECRET)

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Instantiate settings
settings = Settings()
