import pytest

from src.medialib.media.file_location import FileLocation, normalize_directory, resolve_storage_path


@pytest.mark.parametrize(
    ("basename", "extension", "directory"),
    [
        ("photo", "jpg", "image"),
        ("archive.tar", "gz", "document/2024/reports"),
        ("readme", "", ""),
        ("clip", "mp4", ""),
    ],
)
def test_relative_path_round_trips(basename: str, extension: str, directory: str) -> None:
    location = FileLocation.compose(basename, extension, "public", directory)

    parsed = FileLocation.from_relative_path(location.relative_path(), "public")

    assert parsed == location


def test_relative_path_normalizes_directory_slashes() -> None:
    location = FileLocation("photo", "jpg", "public", "/image//2024/")

    assert location.relative_path() == "image/2024/photo.jpg"


def test_empty_directory_yields_bare_file_name() -> None:
    assert FileLocation("photo", "jpg", "public", "//").relative_path() == "photo.jpg"


def test_empty_extension_keeps_trailing_dot() -> None:
    location = FileLocation("readme", "", "public", "docs")

    assert location.file_name() == "readme."
    assert location.relative_path() == "docs/readme."


def test_from_relative_path_without_directory_or_extension() -> None:
    location = FileLocation.from_relative_path("Makefile", "public")

    assert location.directory == ""
    assert location.basename == "Makefile"
    assert location.extension == ""


def test_absolute_storage_path_uses_template() -> None:
    location = FileLocation("photo", "jpg", "public", "image")

    assert location.absolute_storage_path() == "media/image/photo.jpg"
    assert location.absolute_storage_path("uploads/{path}") == "uploads/image/photo.jpg"


def test_thumbnail_location_is_distinct_sibling() -> None:
    location = FileLocation("sunset", "jpg", "public", "image")

    thumbnail = location.thumbnail_location(extension="jpg")

    assert thumbnail.relative_path() == "image/thumbnails/sunset_jpg_thumb.jpg"
    assert thumbnail.disk == "public"
    assert thumbnail.relative_path() != location.relative_path()


def test_with_name_keeps_disk_and_directory() -> None:
    location = FileLocation("photo", "png", "s3", "image")

    renamed = location.with_name("photo_1", "jpg")

    assert renamed == FileLocation("photo_1", "jpg", "s3", "image")


def test_path_helpers() -> None:
    assert normalize_directory(None) == ""
    assert normalize_directory("a\\b//c/") == "a/b/c"
    assert resolve_storage_path("media/{path}", "/image/x.jpg") == "media/image/x.jpg"
