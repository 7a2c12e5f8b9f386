from pathlib import Path

import pytest

from src.medialib.exceptions import (
    DatabaseOperationError,
    MediaValidationError,
    NotFoundError,
    StorageError,
)
from src.medialib.media.media_deletion_service import MediaDeletionService
from src.medialib.media.media_models import ExternalMediaRequest, LocalMediaRequest
from src.medialib.media.media_types import MediaKind
from tests.helpers.media import build_services, make_image_bytes


def store_image(services, name: str, *, thumbnail: bool = True):
    return services.store.store(
        LocalMediaRequest(
            payload=make_image_bytes(),
            original_filename=f"{name}.jpg",
            generate_thumbnail=thumbnail,
        )
    )


def store_document(services, name: str):
    return services.store.store(
        LocalMediaRequest(payload=b"%PDF-1.4", original_filename=f"{name}.pdf")
    )


def test_delete_one_removes_files_then_record(services, disk_root: Path) -> None:
    asset = store_image(services, "sunset")

    assert services.deletion.delete_one(asset.id) is True

    assert not (disk_root / "media/image/sunset.jpg").exists()
    assert not (disk_root / "media/image/thumbnails/sunset_jpg_thumb.jpg").exists()
    with pytest.raises(NotFoundError):
        services.records.get(asset.id)


def test_delete_one_tolerates_missing_files(services, disk_root: Path) -> None:
    asset = store_image(services, "sunset")
    (disk_root / "media/image/sunset.jpg").unlink()
    (disk_root / "media/image/thumbnails/sunset_jpg_thumb.jpg").unlink()

    assert services.deletion.delete_one(asset.id) is True
    with pytest.raises(NotFoundError):
        services.records.get(asset.id)


def test_delete_one_unknown_id(services) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        services.deletion.delete_one(424242)

    assert excinfo.value.media_id == 424242


def test_delete_external_asset_only_removes_record(services) -> None:
    asset = services.store.store(ExternalMediaRequest(url="https://example.com/a.png", name="Remote"))

    assert services.deletion.delete_one(asset.id) is True


def test_record_delete_failure_names_the_id(services, disk_root: Path) -> None:
    asset = store_image(services, "sunset", thumbnail=False)

    class StickyRecords:
        def __init__(self, inner):
            self._inner = inner

        def get(self, media_id):
            return self._inner.get(media_id)

        def delete(self, media_id):
            raise DatabaseOperationError("media_asset: database operation failed")

    deletion = MediaDeletionService(
        records=StickyRecords(services.records), disks=services.disks, settings=services.settings
    )

    with pytest.raises(StorageError) as excinfo:
        deletion.delete_one(asset.id)

    assert excinfo.value.media_id == asset.id
    assert not (disk_root / "media/image/sunset.jpg").exists()


def test_delete_many_isolates_failures(services) -> None:
    first = store_image(services, "first")
    second = store_image(services, "second")

    result = services.deletion.delete_many([first.id, 999999, second.id])

    assert result.succeeded == [first.id, second.id]
    assert len(result.failed) == 1
    assert result.failed[0].id == 999999
    assert "999999" in result.failed[0].error
    assert result.to_dict()["failed"] == [{"id": 999999, "error": result.failed[0].error}]


def test_delete_by_kind_only_touches_that_kind(services) -> None:
    store_image(services, "one")
    store_image(services, "two")
    document = store_document(services, "report")

    result = services.deletion.delete_by_kind("image")

    assert len(result.succeeded) == 2
    assert result.failed == []
    assert services.records.get(document.id).id == document.id


def test_delete_by_kind_with_filters(services) -> None:
    keep = store_image(services, "keep")
    drop = store_image(services, "drop")

    result = services.deletion.delete_by_kind(MediaKind.IMAGE, {"display_name": "drop"})

    assert result.succeeded == [drop.id]
    assert services.records.get(keep.id).display_name == "keep"


def test_delete_by_kind_rejects_unknown_filter(services) -> None:
    with pytest.raises(MediaValidationError):
        services.deletion.delete_by_kind(MediaKind.IMAGE, {"owner": "me"})


def test_delete_by_disabled_kind(media_settings, records, disks) -> None:
    settings = media_settings.model_copy(update={"enabled_kinds": [MediaKind.IMAGE]})
    services = build_services(settings, records, disks)

    with pytest.raises(MediaValidationError):
        services.deletion.delete_by_kind(MediaKind.AUDIO)


def test_sweep_removes_orphans_and_their_thumbnails(services, disk_root: Path) -> None:
    kept = store_image(services, "kept")
    services.disks.write("public", "media/image/stray.jpg", b"orphan")
    services.disks.write("public", "media/image/thumbnails/stray_jpg_thumb.jpg", b"orphan thumb")
    services.disks.write("public", "media/image/thumbnails/lonely_jpg_thumb.jpg", b"no primary")

    result = services.deletion.sweep_orphans(MediaKind.IMAGE)

    assert result.removed == ["media/image/stray.jpg"]
    assert result.errors == []
    assert not (disk_root / "media/image/stray.jpg").exists()
    assert not (disk_root / "media/image/thumbnails/stray_jpg_thumb.jpg").exists()
    assert (disk_root / "media/image/thumbnails/lonely_jpg_thumb.jpg").exists()
    assert (disk_root / "media" / kept.path).exists()
    assert (disk_root / "media" / kept.thumbnail_path).exists()


def test_sweep_dry_run_only_reports(services, disk_root: Path) -> None:
    services.disks.write("public", "media/document/old.pdf", b"%PDF")

    result = services.deletion.sweep_orphans("document", dry_run=True)

    assert result.removed == ["media/document/old.pdf"]
    assert result.dry_run is True
    assert (disk_root / "media/document/old.pdf").exists()


def test_sweep_collects_errors_and_continues(services) -> None:
    services.disks.write("public", "media/image/a.jpg", b"a")
    services.disks.write("public", "media/image/b.jpg", b"b")

    class FlakyDisks:
        def __init__(self, inner):
            self._inner = inner

        def __getattr__(self, name):
            return getattr(self._inner, name)

        def delete(self, disk, path):
            if path.endswith("a.jpg"):
                raise StorageError("permission denied", path=path)
            self._inner.delete(disk, path)

    deletion = MediaDeletionService(
        records=services.records, disks=FlakyDisks(services.disks), settings=services.settings
    )

    result = deletion.sweep_orphans(MediaKind.IMAGE)

    assert result.removed == ["media/image/b.jpg"]
    assert [error.path for error in result.errors] == ["media/image/a.jpg"]
    assert "permission denied" in result.errors[0].error


def test_sweep_of_empty_directory(services) -> None:
    result = services.deletion.sweep_orphans(MediaKind.VIDEO)

    assert result.removed == []
    assert result.to_dict() == {"kind": "video", "removed": [], "errors": [], "dry_run": False}


def test_sweep_keeps_recorded_files_of_other_kinds(services, disk_root: Path) -> None:
    clip = services.store.store(
        LocalMediaRequest(payload=b"\x00\x00\x00\x18ftypmp42", original_filename="clip.mp4", directory="image/clips")
    )
    services.disks.write("public", "media/image/clips/stale.mp4", b"orphan")

    result = services.deletion.sweep_orphans(MediaKind.IMAGE)

    assert clip.kind is MediaKind.VIDEO
    assert clip.path == "image/clips/clip.mp4"
    assert result.removed == ["media/image/clips/stale.mp4"]
    assert (disk_root / "media/image/clips/clip.mp4").exists()
