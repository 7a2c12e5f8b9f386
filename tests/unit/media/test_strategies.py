from pathlib import Path

import pytest

from src.medialib.exceptions import DatabaseOperationError, NotFoundError, StorageError
from src.medialib.media.file_location import FileLocation
from src.medialib.media.media_models import LocalMediaRequest
from src.medialib.media.media_types import MediaKind
from src.medialib.media.strategies import (
    STRATEGY_CLASSES,
    ImageMediaStrategy,
    build_strategies,
)
from src.medialib.settings import ImageTransformConfig, ThumbnailConfig
from tests.helpers.media import build_services, make_image_bytes, open_image


def test_registry_covers_every_kind(records, disks, media_settings) -> None:
    strategies = build_strategies(records=records, disks=disks, settings=media_settings)

    assert set(STRATEGY_CLASSES) == set(MediaKind)
    assert {kind: strategy.kind for kind, strategy in strategies.items()} == {k: k for k in MediaKind}
    assert [kind for kind, s in strategies.items() if s.supports_thumbnail()] == [MediaKind.IMAGE]


def test_thumbnail_is_written_next_to_primary(services, disk_root: Path) -> None:
    asset = services.store.store(
        LocalMediaRequest(
            payload=make_image_bytes(size=(800, 600)),
            original_filename="sunset.jpg",
            generate_thumbnail=True,
        )
    )

    assert asset.thumbnail_path == "image/thumbnails/sunset_jpg_thumb.jpg"
    thumbnail = open_image((disk_root / "media" / asset.thumbnail_path).read_bytes())
    assert thumbnail.size == (300, 225)


def test_thumbnail_is_skipped_unless_requested(services) -> None:
    asset = services.store.store(
        LocalMediaRequest(payload=make_image_bytes(), original_filename="sunset.jpg")
    )

    assert asset.thumbnail_path is None


def test_thumbnail_always_setting(media_settings, records, disks) -> None:
    settings = media_settings.model_copy(update={"generate_thumbnails_always": True})
    services = build_services(settings, records, disks)

    asset = services.store.store(
        LocalMediaRequest(payload=make_image_bytes(), original_filename="sunset.jpg")
    )

    assert asset.thumbnail_path is not None


def test_thumbnails_disabled_wins(media_settings, records, disks) -> None:
    settings = media_settings.model_copy(
        update={"thumbnails_enabled": False, "generate_thumbnails_always": True}
    )
    services = build_services(settings, records, disks)

    asset = services.store.store(
        LocalMediaRequest(payload=make_image_bytes(), original_filename="sunset.jpg", generate_thumbnail=True)
    )

    assert asset.thumbnail_path is None


def test_thumbnail_failure_keeps_primary(media_settings, records, disks, disk_root: Path) -> None:
    settings = media_settings.model_copy(update={"thumbnail": None})
    services = build_services(settings, records, disks)

    asset = services.store.store(
        LocalMediaRequest(payload=make_image_bytes(), original_filename="sunset.jpg", generate_thumbnail=True)
    )

    assert asset.id is not None
    assert asset.thumbnail_path is None
    assert "thumbnail_path" not in asset.meta
    assert (disk_root / "media/image/sunset.jpg").is_file()
    assert not (disk_root / "media/image/thumbnails").exists()


def test_thumbnail_write_failure_is_recovered(media_settings, records, disks) -> None:
    class ThumbnailRejectingDisks:
        def __init__(self, inner):
            self._inner = inner

        def __getattr__(self, name):
            return getattr(self._inner, name)

        def write(self, disk, path, data):
            if "/thumbnails/" in path:
                raise StorageError("disk full", path=path)
            self._inner.write(disk, path, data)

    strategy = ImageMediaStrategy(records=records, disks=ThumbnailRejectingDisks(disks), settings=media_settings)

    outcome = strategy.derive_thumbnail(FileLocation("sunset", "jpg", "public", "image"), make_image_bytes())

    assert outcome.ok is False
    assert "disk full" in outcome.error


def test_thumbnail_uses_configured_format(media_settings, records, disks) -> None:
    settings = media_settings.model_copy(update={"thumbnail": ThumbnailConfig(format="png")})
    services = build_services(settings, records, disks)

    asset = services.store.store(
        LocalMediaRequest(payload=make_image_bytes(), original_filename="sunset.jpg", generate_thumbnail=True)
    )

    assert asset.thumbnail_path == "image/thumbnails/sunset_jpg_thumb.png"


def test_record_failure_removes_written_files(media_settings, disks, records, disk_root: Path) -> None:
    class BrokenRecords:
        def create(self, draft):
            raise DatabaseOperationError("media_asset: database operation failed")

    strategy = ImageMediaStrategy(records=BrokenRecords(), disks=disks, settings=media_settings)

    with pytest.raises(DatabaseOperationError):
        strategy.store_local(
            LocalMediaRequest(payload=make_image_bytes(), original_filename="sunset.jpg", generate_thumbnail=True)
        )

    assert [p for p in disk_root.rglob("*") if p.is_file()] == []


def test_fetch_primary_reports_missing_file(services, disk_root: Path) -> None:
    asset = services.store.store(
        LocalMediaRequest(payload=make_image_bytes(), original_filename="sunset.jpg")
    )
    (disk_root / "media" / asset.path).unlink()
    strategy = build_strategies(records=services.records, disks=services.disks, settings=services.settings)[
        MediaKind.IMAGE
    ]

    with pytest.raises(NotFoundError) as excinfo:
        strategy.fetch_primary(asset)

    assert excinfo.value.media_id == asset.id
    assert excinfo.value.path == "image/sunset.jpg"


def test_same_basename_with_different_extensions_keeps_thumbnails_apart(media_settings, records, disks) -> None:
    settings = media_settings.model_copy(update={"image": ImageTransformConfig(format=None)})
    services = build_services(settings, records, disks)

    red = services.store.store(
        LocalMediaRequest(
            payload=make_image_bytes(color=(255, 0, 0)),
            original_filename="photo.jpg",
            generate_thumbnail=True,
        )
    )
    blue = services.store.store(
        LocalMediaRequest(
            payload=make_image_bytes(fmt="PNG", color=(0, 0, 255)),
            original_filename="photo.png",
            generate_thumbnail=True,
        )
    )

    assert (red.path, blue.path) == ("image/photo.jpg", "image/photo.png")
    assert red.thumbnail_path == "image/thumbnails/photo_jpg_thumb.jpg"
    assert blue.thumbnail_path == "image/thumbnails/photo_png_thumb.jpg"

    services.deletion.delete_one(blue.id)

    thumbnail = services.retrieval.fetch_thumbnail(red.id)
    with thumbnail.open() as handle:
        red_channel, _green, blue_channel = open_image(handle.read()).getpixel((0, 0))
    assert red_channel > 200
    assert blue_channel < 50
