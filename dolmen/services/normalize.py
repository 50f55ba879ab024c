"""
Normalization Service

Turns validated edit buffers into the row payloads written to Supabase.
"""

from typing import Any, Dict, Optional

from dolmen.schemas.catalog import ArtistForm, ReleaseForm, ThemeSettings, THEME_COLOR_FIELDS

# Blank values for these columns are stored as NULL
ARTIST_NULLABLE_FIELDS = ("bio", "instagram", "twitter", "spotify", "soundcloud")
RELEASE_NULLABLE_FIELDS = ("artist_id", "spotify_url", "apple_music_url", "soundcloud_url")


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _or_none(value: Optional[str]) -> Optional[str]:
    cleaned = _clean(value)
    return cleaned or None


def normalize_artist(form: ArtistForm) -> Dict[str, Any]:
    """Row payload for an artist. The id is never part of the payload."""
    record: Dict[str, Any] = {
        "name": _clean(form.name),
        "genre": _clean(form.genre),
        "image_url": _clean(form.image_url),
        "color": _clean(form.color),
        "featured": form.featured,
    }
    if form.order_index is not None:
        record["order_index"] = form.order_index
    for field in ARTIST_NULLABLE_FIELDS:
        record[field] = _or_none(getattr(form, field))
    return record


def normalize_release(form: ReleaseForm) -> Dict[str, Any]:
    """Row payload for a release."""
    record: Dict[str, Any] = {
        "title": _clean(form.title),
        "artist_name": _clean(form.artist_name),
        "artwork_url": _clean(form.artwork_url),
        "year": _clean(form.year),
        "color": _clean(form.color),
        "featured": form.featured,
    }
    if form.order_index is not None:
        record["order_index"] = form.order_index
    for field in RELEASE_NULLABLE_FIELDS:
        record[field] = _or_none(getattr(form, field))
    return record


def normalize_theme(form: ThemeSettings) -> Dict[str, Any]:
    record = {field: _clean(getattr(form, field)) for field in THEME_COLOR_FIELDS}
    record["label_name"] = _clean(form.label_name)
    return record
