"""Settings surface for the media library.

Values are read from ``MEDIA_*`` environment variables (nested fields use
``__``, e.g. ``MEDIA_IMAGE__QUALITY=90``). Defaults mirror the packaged media
configuration: files are stored under ``media/{path}`` on the ``public`` disk,
images are re-encoded to JPEG and thumbnails are 300x300 JPEGs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .media.file_location import PATH_PLACEHOLDER, resolve_storage_path
from .media.media_types import MediaKind

AnchorPosition = Literal[
    "top-left",
    "top",
    "top-right",
    "left",
    "center",
    "right",
    "bottom-left",
    "bottom",
    "bottom-right",
]


class ResizeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    width: int | None = Field(default=1920, gt=0)
    height: int | None = Field(default=1080, gt=0)
    maintain_aspect_ratio: bool = True
    upscale: bool = False


class CropConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    width: int = Field(default=800, gt=0)
    height: int = Field(default=600, gt=0)
    position: AnchorPosition = "center"


class WatermarkConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    path: Path | None = None
    position: AnchorPosition = "bottom-right"
    opacity: int = Field(default=80, ge=0, le=100)
    margin: int = Field(default=10, ge=0)


class ImageTransformConfig(BaseModel):
    """Transforms applied to every stored image before it is written."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    format: str | None = Field(
        default="jpg",
        description="Target encode format (jpg, png, webp); None keeps the source format.",
    )
    quality: int = Field(default=85, ge=0, le=100)
    resize: ResizeConfig = Field(default_factory=ResizeConfig)
    crop: CropConfig = Field(default_factory=CropConfig)
    watermark: WatermarkConfig = Field(default_factory=WatermarkConfig)


class ThumbnailConfig(BaseModel):
    """Thumbnail derivation profile; resize is mandatory."""

    model_config = ConfigDict(frozen=True)

    format: str = "jpg"
    quality: int = Field(default=80, ge=0, le=100)
    resize: ResizeConfig = Field(
        default_factory=lambda: ResizeConfig(enabled=True, width=300, height=300)
    )


class KindRules(BaseModel):
    """Per-kind upload allow-lists and size cap."""

    model_config = ConfigDict(frozen=True)

    extensions: List[str]
    content_types: List[str]
    max_size_kb: int = Field(gt=0)


def _default_kind_rules() -> Dict[MediaKind, KindRules]:
    return {
        MediaKind.IMAGE: KindRules(
            extensions=["jpg", "jpeg", "png", "gif", "webp"],
            content_types=["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"],
            max_size_kb=5120,
        ),
        MediaKind.VIDEO: KindRules(
            extensions=["mp4", "mov", "avi"],
            content_types=["video/mp4", "video/quicktime", "video/x-msvideo"],
            max_size_kb=20480,
        ),
        MediaKind.AUDIO: KindRules(
            extensions=["mp3", "wav"],
            content_types=["audio/mpeg", "audio/wav", "audio/mp3"],
            max_size_kb=10240,
        ),
        MediaKind.DOCUMENT: KindRules(
            extensions=["pdf", "doc", "docx", "xls", "xlsx"],
            content_types=[
                "application/pdf",
                "application/msword",
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                "application/vnd.ms-excel",
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            ],
            max_size_kb=10240,
        ),
    }


def _default_disk_roots() -> Dict[str, Path]:
    return {"public": Path("./var/media")}


class MediaSettings(BaseSettings):
    """Pydantic settings container for the media pipeline."""

    model_config = SettingsConfigDict(env_prefix="MEDIA_", env_nested_delimiter="__")

    database_url: str = Field(
        default="sqlite:///media.db",
        description="SQLAlchemy URL of the media record store.",
    )
    default_disk: str = Field(default="public", min_length=1)
    disk_roots: Dict[str, Path] = Field(
        default_factory=_default_disk_roots,
        description="Mapping of disk names to filesystem roots.",
    )
    storage_path_template: str = Field(
        default="media/{path}",
        description="Disk layout template with a single {path} placeholder.",
    )
    thumbnail_directory: str = Field(default="thumbnails", min_length=1)
    thumbnail_suffix: str = Field(default="_thumb", min_length=1)
    thumbnails_enabled: bool = True
    generate_thumbnails_always: bool = False
    banned_extensions: List[str] = Field(default_factory=lambda: ["exe", "bat", "cmd"])
    enabled_kinds: List[MediaKind] = Field(default_factory=lambda: list(MediaKind))
    kind_rules: Dict[MediaKind, KindRules] = Field(default_factory=_default_kind_rules)
    image: ImageTransformConfig = Field(default_factory=ImageTransformConfig)
    thumbnail: ThumbnailConfig | None = Field(default_factory=ThumbnailConfig)
    cache_max_age_seconds: int = Field(default=3600, ge=0)
    max_name_length: int = Field(default=255, gt=0)
    max_description_length: int = Field(default=1000, gt=0)
    max_url_length: int = Field(default=1000, gt=0)
    max_directory_length: int = Field(default=500, gt=0)

    @field_validator("storage_path_template")
    @classmethod
    def _single_placeholder(cls, value: str) -> str:
        if value.count(PATH_PLACEHOLDER) != 1:
            raise ValueError(f"storage_path_template must contain exactly one {PATH_PLACEHOLDER}")
        return value

    @field_validator("banned_extensions")
    @classmethod
    def _normalize_banned(cls, value: List[str]) -> List[str]:
        return [item.strip().lstrip(".").lower() for item in value]

    def is_enabled(self, kind: MediaKind) -> bool:
        return kind in self.enabled_kinds

    def rules_for(self, kind: MediaKind) -> KindRules | None:
        return self.kind_rules.get(kind)

    def kind_directory(self, kind: MediaKind) -> str:
        """Disk directory holding every file stored for ``kind`` by default."""
        return resolve_storage_path(self.storage_path_template, kind.value)

    @classmethod
    def build_default(cls) -> "MediaSettings":
        return cls()


__all__ = [
    "AnchorPosition",
    "CropConfig",
    "ImageTransformConfig",
    "KindRules",
    "MediaSettings",
    "ResizeConfig",
    "ThumbnailConfig",
    "WatermarkConfig",
]
