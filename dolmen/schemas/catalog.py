"""Pydantic schemas for artists, releases and the site theme."""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

DEFAULT_ACCENT_COLOR = "#3B82F6"


# Stored records

class Artist(BaseModel):
    """Artist row as stored in the `artists` table."""
    id: Optional[str] = None
    name: str
    genre: str = ""
    bio: Optional[str] = None
    image_url: str = ""
    color: str
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    spotify: Optional[str] = None
    soundcloud: Optional[str] = None
    featured: Optional[bool] = None
    order_index: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Release(BaseModel):
    """Release row as stored in the `releases` table."""
    id: Optional[str] = None
    title: str
    artist_name: str
    artist_id: Optional[str] = None
    artwork_url: str
    year: str
    color: str
    spotify_url: Optional[str] = None
    apple_music_url: Optional[str] = None
    soundcloud_url: Optional[str] = None
    featured: Optional[bool] = None
    order_index: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ThemeSettings(BaseModel):
    """The single global theme row."""
    primary_color: str = "#3B82F6"
    secondary_color: str = "#EF4444"
    accent_color: str = "#FBBF24"
    extra_color_1: str = "#10B981"
    extra_color_2: str = "#8B5CF6"
    background_color: str = "#FFFFFF"
    border_color: str = "#000000"
    label_name: str = "Dolmen Gate Media"


THEME_COLOR_FIELDS = (
    "primary_color",
    "secondary_color",
    "accent_color",
    "extra_color_1",
    "extra_color_2",
    "background_color",
    "border_color",
)


# Edit forms

class PendingImage(BaseModel):
    """A local image file chosen in the artist form, not uploaded yet."""
    filename: str
    content: bytes = Field(repr=False)
    content_type: Optional[str] = None


class ArtistInput(BaseModel):
    """Editable artist fields. Strings are raw user input."""
    name: str = ""
    genre: str = ""
    bio: str = ""
    image_url: str = ""
    color: str = DEFAULT_ACCENT_COLOR
    instagram: str = ""
    twitter: str = ""
    spotify: str = ""
    soundcloud: str = ""
    featured: bool = True
    order_index: Optional[int] = None


class ArtistForm(ArtistInput):
    """Edit buffer for an artist, optionally holding a local image to upload."""
    id: Optional[str] = None
    image_file: Optional[PendingImage] = None

    @classmethod
    def from_record(cls, artist: Artist) -> "ArtistForm":
        data = artist.model_dump(exclude={"created_at", "updated_at"})
        cleaned = {key: ("" if value is None else value) for key, value in data.items()}
        cleaned["id"] = artist.id
        cleaned["featured"] = bool(artist.featured)
        cleaned["order_index"] = artist.order_index
        return cls(**cleaned)


class ReleaseInput(BaseModel):
    """Editable release fields."""
    title: str = ""
    artist_name: str = ""
    artist_id: str = ""
    artwork_url: str = ""
    year: str = ""
    color: str = DEFAULT_ACCENT_COLOR
    spotify_url: str = ""
    apple_music_url: str = ""
    soundcloud_url: str = ""
    featured: bool = True
    order_index: Optional[int] = None


class ReleaseForm(ReleaseInput):
    """Edit buffer for a release."""
    id: Optional[str] = None

    @classmethod
    def from_record(cls, release: Release) -> "ReleaseForm":
        data = release.model_dump(exclude={"created_at", "updated_at"})
        cleaned = {key: ("" if value is None else value) for key, value in data.items()}
        cleaned["id"] = release.id
        cleaned["featured"] = bool(release.featured)
        cleaned["order_index"] = release.order_index
        return cls(**cleaned)


# Response schemas

class ArtistListResponse(BaseModel):
    """Fresh artist list plus any alerts raised while producing it."""
    items: List[Artist] = Field(default_factory=list)
    alerts: List[str] = Field(default_factory=list)


class ReleaseListResponse(BaseModel):
    items: List[Release] = Field(default_factory=list)
    alerts: List[str] = Field(default_factory=list)


class ThemeResponse(BaseModel):
    settings: ThemeSettings
    variables: Dict[str, str] = Field(description="Style variable name -> value")
    loaded: bool = Field(description="False while the built-in defaults are in use")
    alerts: List[str] = Field(default_factory=list)


class ImageUploadResponse(BaseModel):
    url: str
