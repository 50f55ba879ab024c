import os
from functools import lru_cache
from typing import List


class Settings:
    """Application settings loaded from environment variables."""

    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    # Fixed id of the single theme_settings row, created out-of-band
    THEME_SETTINGS_ID: str = os.getenv(
        "THEME_SETTINGS_ID",
        "00000000-0000-0000-0000-000000000001",
    )
    ARTIST_IMAGES_BUCKET: str = os.getenv("ARTIST_IMAGES_BUCKET", "artist-images")
    ADMIN_RESOLUTION_TIMEOUT: float = float(os.getenv("ADMIN_RESOLUTION_TIMEOUT", "10"))
    OAUTH_REDIRECT_URL: str = os.getenv("OAUTH_REDIRECT_URL", "http://localhost:5173/admin")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS_RAW: str = os.getenv("CORS_ORIGINS", "*")

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS_RAW.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
