"""Media kinds, sources and the fixed extension/MIME lookup tables."""

from __future__ import annotations

from enum import StrEnum

from ..exceptions import MediaValidationError


class MediaKind(StrEnum):
    """Media category governing strategy, allow-list and transform rules."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def supports_thumbnails(self) -> bool:
        return self is MediaKind.IMAGE


class MediaSource(StrEnum):
    """Where the asset bytes live."""

    LOCAL = "local"
    EXTERNAL = "external"


DEFAULT_CONTENT_TYPE = "application/octet-stream"

EXTENSION_CONTENT_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

EXTENSION_KINDS: dict[str, MediaKind] = {
    "jpg": MediaKind.IMAGE,
    "jpeg": MediaKind.IMAGE,
    "png": MediaKind.IMAGE,
    "gif": MediaKind.IMAGE,
    "webp": MediaKind.IMAGE,
    "mp4": MediaKind.VIDEO,
    "mov": MediaKind.VIDEO,
    "avi": MediaKind.VIDEO,
    "mp3": MediaKind.AUDIO,
    "wav": MediaKind.AUDIO,
    "pdf": MediaKind.DOCUMENT,
    "doc": MediaKind.DOCUMENT,
    "docx": MediaKind.DOCUMENT,
    "xls": MediaKind.DOCUMENT,
    "xlsx": MediaKind.DOCUMENT,
}


def normalize_extension(extension: str | None) -> str:
    """Return ``extension`` lower-cased without a leading dot."""
    return (extension or "").strip().lstrip(".").lower()


def content_type_for(extension: str | None, default: str = DEFAULT_CONTENT_TYPE) -> str:
    """Map a file extension to its MIME type, falling back to ``default``."""
    return EXTENSION_CONTENT_TYPES.get(normalize_extension(extension), default)


def detect_kind(extension: str | None) -> MediaKind:
    """Auto-detect the media kind from a file extension."""
    normalized = normalize_extension(extension)
    try:
        return EXTENSION_KINDS[normalized]
    except KeyError:
        raise MediaValidationError(
            f"could not auto-detect media type for extension '{normalized}'",
            field="type",
            extension=normalized,
        ) from None


def parse_kind(value: MediaKind | str) -> MediaKind:
    """Coerce ``value`` into a :class:`MediaKind` or raise a validation error."""
    if isinstance(value, MediaKind):
        return value
    try:
        return MediaKind(str(value).strip().lower())
    except ValueError:
        raise MediaValidationError(f"invalid media type '{value}'", field="type") from None
