"""
Validation Service

Field-level checks for artist, release and theme candidates. Every check
runs and every violation is collected; an empty result means the
candidate can be persisted.
"""

import re
from collections.abc import Mapping
from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel

from dolmen.schemas.catalog import THEME_COLOR_FIELDS

FormErrors = Dict[str, str]

MIN_YEAR = 1900
MAX_YEARS_AHEAD = 5

TITLE_MAX_LENGTH = 200
ARTIST_NAME_MAX_LENGTH = 100
NAME_MAX_LENGTH = 100
GENRE_MAX_LENGTH = 50
BIO_MAX_LENGTH = 1000
LABEL_NAME_MAX_LENGTH = 100

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "svg")

# Release title / artist name: letters, digits, whitespace and - _ . , : ! ? ' " ( ) &
TITLE_PATTERN = re.compile(r"^[\w\s\-.,:!?'\"()&]+$")
TITLE_ALLOWED = "letters, numbers, spaces and - _ . , : ! ? ' \" ( ) &"

# Artist name / genre: letters, digits, whitespace and - _ . ' &
NAME_PATTERN = re.compile(r"^[\w\s\-.'&]+$")
NAME_ALLOWED = "letters, numbers, spaces and - _ . ' &"

ARTWORK_URL_PATTERN = re.compile(
    r"^https?://.+\.(jpg|jpeg|png|gif|webp|svg)(\?.*)?$", re.IGNORECASE
)
IMAGE_URL_PATTERN = re.compile(
    r"^https?://.+\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE
)
YEAR_PATTERN = re.compile(r"^[0-9]{4}$")
HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

SPOTIFY_PATTERN = re.compile(r"^https?://(open\.)?spotify\.com(/\S*)?$", re.IGNORECASE)
APPLE_MUSIC_PATTERN = re.compile(r"^https?://music\.apple\.com(/\S*)?$", re.IGNORECASE)
SOUNDCLOUD_PATTERN = re.compile(
    r"^https?://(www\.|m\.)?soundcloud\.com(/\S*)?$", re.IGNORECASE
)
INSTAGRAM_PATTERN = re.compile(
    r"^(@[\w.]+|https?://(www\.)?instagram\.com(/\S*)?)$", re.IGNORECASE
)
TWITTER_PATTERN = re.compile(
    r"^(@\w+|https?://(www\.)?(twitter|x)\.com(/\S*)?)$", re.IGNORECASE
)

FIELD_LABELS = {
    "title": "Title",
    "artist_name": "Artist name",
    "artwork_url": "Artwork URL",
    "image_url": "Image URL",
    "year": "Year",
    "color": "Color",
    "name": "Name",
    "genre": "Genre",
    "bio": "Bio",
    "label_name": "Label name",
    "spotify": "Spotify",
    "spotify_url": "Spotify URL",
    "apple_music_url": "Apple Music URL",
    "soundcloud": "SoundCloud",
    "soundcloud_url": "SoundCloud URL",
    "instagram": "Instagram",
    "twitter": "Twitter",
}


def _label(field: str) -> str:
    return FIELD_LABELS.get(field, field.replace("_", " ").capitalize())


def _as_mapping(candidate: Any) -> Mapping:
    if isinstance(candidate, BaseModel):
        return candidate.model_dump()
    if isinstance(candidate, Mapping):
        return candidate
    raise TypeError(f"Cannot validate {type(candidate).__name__}")


def _text(values: Mapping, field: str) -> str:
    value = values.get(field)
    if value is None:
        return ""
    return str(value).strip()


def _check_required(errors: FormErrors, field: str, value: str) -> bool:
    if not value:
        errors[field] = f"{_label(field)} is required"
        return False
    return True


def _check_text(
    errors: FormErrors,
    field: str,
    value: str,
    max_length: int,
    pattern: Optional[re.Pattern] = None,
    allowed: str = "",
) -> None:
    if len(value) > max_length:
        errors[field] = f"{_label(field)} must be {max_length} characters or less"
    elif pattern is not None and not pattern.match(value):
        errors[field] = f"{_label(field)} contains invalid characters. Allowed: {allowed}"


def _check_color(errors: FormErrors, field: str, value: str) -> None:
    if _check_required(errors, field, value) and not HEX_COLOR_PATTERN.match(value):
        errors[field] = f"{_label(field)} must be a valid hex color (e.g. #3B82F6)"


def _check_year(errors: FormErrors, value: str, current_year: int) -> None:
    if not _check_required(errors, "year", value):
        return
    if not YEAR_PATTERN.match(value):
        errors["year"] = "Year must be a 4-digit number"
        return
    max_year = current_year + MAX_YEARS_AHEAD
    if not MIN_YEAR <= int(value) <= max_year:
        errors["year"] = f"Year must be between {MIN_YEAR} and {max_year}"


def _check_link(
    errors: FormErrors, field: str, value: str, pattern: re.Pattern, expected: str
) -> None:
    if value and not pattern.match(value):
        errors[field] = f"{_label(field)} must be a valid {expected}"


def _has_image_extension(filename: str) -> bool:
    _, dot, extension = filename.rpartition(".")
    return bool(dot) and extension.lower() in IMAGE_EXTENSIONS


def validate_artist(candidate: Any) -> FormErrors:
    """
    Validate an artist candidate.

    Only name and color are required. A pending image file replaces the
    image URL check with a file extension check.
    """
    values = _as_mapping(candidate)
    errors: FormErrors = {}

    name = _text(values, "name")
    if _check_required(errors, "name", name):
        _check_text(errors, "name", name, NAME_MAX_LENGTH, NAME_PATTERN, NAME_ALLOWED)

    genre = _text(values, "genre")
    if genre:
        _check_text(errors, "genre", genre, GENRE_MAX_LENGTH, NAME_PATTERN, NAME_ALLOWED)

    _check_text(errors, "bio", _text(values, "bio"), BIO_MAX_LENGTH)

    image_file = values.get("image_file")
    image_url = _text(values, "image_url")
    if image_file:
        filename = image_file.get("filename", "") if isinstance(image_file, Mapping) else image_file.filename
        if not _has_image_extension(filename):
            errors["image_url"] = (
                "Image file must be one of: " + ", ".join(IMAGE_EXTENSIONS)
            )
    elif image_url and not IMAGE_URL_PATTERN.match(image_url):
        errors["image_url"] = (
            "Image URL must be an http(s) link ending in " + ", ".join(IMAGE_EXTENSIONS)
        )

    _check_color(errors, "color", _text(values, "color"))

    _check_link(errors, "instagram", _text(values, "instagram"), INSTAGRAM_PATTERN,
                "@handle or instagram.com link")
    _check_link(errors, "twitter", _text(values, "twitter"), TWITTER_PATTERN,
                "@handle or twitter.com link")
    _check_link(errors, "spotify", _text(values, "spotify"), SPOTIFY_PATTERN,
                "open.spotify.com link")
    _check_link(errors, "soundcloud", _text(values, "soundcloud"), SOUNDCLOUD_PATTERN,
                "soundcloud.com link")

    return errors


def validate_release(candidate: Any, current_year: Optional[int] = None) -> FormErrors:
    """
    Validate a release candidate.

    The year range is computed from `current_year`, which defaults to
    today's year at call time.
    """
    values = _as_mapping(candidate)
    errors: FormErrors = {}
    if current_year is None:
        current_year = date.today().year

    title = _text(values, "title")
    if _check_required(errors, "title", title):
        _check_text(errors, "title", title, TITLE_MAX_LENGTH, TITLE_PATTERN, TITLE_ALLOWED)

    artist_name = _text(values, "artist_name")
    if _check_required(errors, "artist_name", artist_name):
        _check_text(
            errors, "artist_name", artist_name, ARTIST_NAME_MAX_LENGTH,
            TITLE_PATTERN, TITLE_ALLOWED,
        )

    artwork_url = _text(values, "artwork_url")
    if _check_required(errors, "artwork_url", artwork_url) and not ARTWORK_URL_PATTERN.match(artwork_url):
        errors["artwork_url"] = (
            "Artwork URL must be an http(s) link ending in " + ", ".join(IMAGE_EXTENSIONS)
        )

    _check_year(errors, _text(values, "year"), current_year)
    _check_color(errors, "color", _text(values, "color"))

    _check_link(errors, "spotify_url", _text(values, "spotify_url"), SPOTIFY_PATTERN,
                "open.spotify.com link")
    _check_link(errors, "apple_music_url", _text(values, "apple_music_url"),
                APPLE_MUSIC_PATTERN, "music.apple.com link")
    _check_link(errors, "soundcloud_url", _text(values, "soundcloud_url"),
                SOUNDCLOUD_PATTERN, "soundcloud.com link")

    return errors


def validate_theme(candidate: Any) -> FormErrors:
    """Validate the theme form: seven hex colors and a label name."""
    values = _as_mapping(candidate)
    errors: FormErrors = {}

    for field in THEME_COLOR_FIELDS:
        _check_color(errors, field, _text(values, field))

    label_name = _text(values, "label_name")
    if _check_required(errors, "label_name", label_name):
        _check_text(errors, "label_name", label_name, LABEL_NAME_MAX_LENGTH)

    return errors
