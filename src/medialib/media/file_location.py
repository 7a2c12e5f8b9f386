"""Value object naming a stored (or to-be-stored) file."""

from __future__ import annotations

import re
from dataclasses import dataclass

PATH_PLACEHOLDER = "{path}"
DEFAULT_STORAGE_TEMPLATE = "media/{path}"

_DUPLICATE_SLASHES = re.compile(r"/{2,}")


def normalize_directory(directory: str | None) -> str:
    """Trim slashes from both ends and collapse duplicate separators."""
    if not directory:
        return ""
    cleaned = directory.replace("\\", "/")
    return _DUPLICATE_SLASHES.sub("/", cleaned).strip("/")


def resolve_storage_path(template: str, relative_path: str) -> str:
    """Substitute ``relative_path`` into the storage template's placeholder."""
    resolved = template.replace(PATH_PLACEHOLDER, relative_path)
    return _DUPLICATE_SLASHES.sub("/", resolved).strip("/")


@dataclass(frozen=True, slots=True)
class FileLocation:
    """Where a file lives: base name, extension, disk and directory.

    Two locations are interchangeable when all four fields match. The
    composed :meth:`relative_path` is what gets persisted; the disk-level
    path is :meth:`absolute_storage_path`, which roots it under the
    configured storage template.
    """

    basename: str
    extension: str
    disk: str
    directory: str = ""

    @classmethod
    def compose(
        cls,
        basename: str,
        extension: str,
        disk: str,
        directory: str = "",
    ) -> "FileLocation":
        return cls(basename=basename, extension=extension, disk=disk, directory=directory)

    @classmethod
    def from_relative_path(cls, path: str, disk: str) -> "FileLocation":
        """Split ``path`` on its last slash and the file name's last dot."""
        directory, slash, file_name = path.rpartition("/")
        if not slash:
            directory, file_name = "", path
        basename, dot, extension = file_name.rpartition(".")
        if not dot:
            basename, extension = file_name, ""
        return cls(basename=basename, extension=extension, disk=disk, directory=directory)

    def file_name(self) -> str:
        # The dot is kept even for an empty extension so the name round-trips.
        return f"{self.basename}.{self.extension}"

    def relative_path(self) -> str:
        directory = normalize_directory(self.directory)
        if not directory:
            return self.file_name()
        return f"{directory}/{self.file_name()}"

    def absolute_storage_path(self, template: str = DEFAULT_STORAGE_TEMPLATE) -> str:
        return resolve_storage_path(template, self.relative_path())

    def with_name(self, basename: str, extension: str | None = None) -> "FileLocation":
        return FileLocation(
            basename=basename,
            extension=self.extension if extension is None else extension,
            disk=self.disk,
            directory=self.directory,
        )

    def thumbnail_location(
        self,
        *,
        extension: str,
        sub_directory: str = "thumbnails",
        suffix: str = "_thumb",
    ) -> "FileLocation":
        """Return the derived thumbnail location for this file.

        Thumbnails sit on the same disk under ``<directory>/<sub_directory>``
        and are named ``<basename>_<extension><suffix>``, so ``photo.jpg`` and
        ``photo.png`` never share a thumbnail.
        """
        directory = normalize_directory(self.directory)
        thumb_directory = f"{directory}/{sub_directory}" if directory else sub_directory
        source = f"{self.basename}_{self.extension}" if self.extension else self.basename
        return FileLocation(
            basename=f"{source}{suffix}",
            extension=extension,
            disk=self.disk,
            directory=thumb_directory,
        )
