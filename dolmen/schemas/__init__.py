from dolmen.schemas.auth import AdminStatus, Identity, SessionResponse
from dolmen.schemas.catalog import (
    Artist,
    ArtistForm,
    ArtistListResponse,
    ImageUploadResponse,
    ArtistInput,
    PendingImage,
    Release,
    ReleaseForm,
    ReleaseInput,
    ReleaseListResponse,
    ThemeResponse,
    ThemeSettings,
    THEME_COLOR_FIELDS,
)

__all__ = [
    # Auth
    "AdminStatus",
    "Identity",
    "SessionResponse",
    # Catalog
    "Artist",
    "ArtistForm",
    "ArtistListResponse",
    "ImageUploadResponse",
    "ArtistInput",
    "PendingImage",
    "Release",
    "ReleaseForm",
    "ReleaseInput",
    "ReleaseListResponse",
    "ThemeResponse",
    "ThemeSettings",
    "THEME_COLOR_FIELDS",
]
