"""Blob storage abstraction ("disks") consumed by the media pipeline."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Protocol

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class DiskStorage(Protocol):
    """Named blob storage backends addressed by disk-relative POSIX paths."""

    def exists(self, disk: str, path: str) -> bool:
        """Return ``True`` when a file exists at ``path``."""

    def write(self, disk: str, path: str, data: bytes) -> None:
        """Write ``data`` at ``path``, creating parent directories."""

    def read(self, disk: str, path: str) -> bytes:
        """Return the bytes stored at ``path``."""

    def open(self, disk: str, path: str) -> BinaryIO:
        """Return a readable binary handle for ``path``."""

    def delete(self, disk: str, path: str) -> None:
        """Remove ``path``; deleting a missing file is not an error."""

    def list_files(self, disk: str, directory: str) -> list[str]:
        """Recursively list files below ``directory``."""

    def absolute_path(self, disk: str, path: str) -> str:
        """Return the physical location of ``path`` for direct streaming."""


class LocalDiskStorage:
    """Local filesystem disks keyed by name."""

    def __init__(self, roots: Mapping[str, Path | str]) -> None:
        self._roots = {name: Path(root).resolve() for name, root in roots.items()}

    @property
    def disks(self) -> list[str]:
        return sorted(self._roots)

    def ensure_roots(self) -> None:
        for root in self._roots.values():
            root.mkdir(parents=True, exist_ok=True)

    def exists(self, disk: str, path: str) -> bool:
        return self._resolve(disk, path).is_file()

    def write(self, disk: str, path: str, data: bytes) -> None:
        target = self._resolve(disk, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"failed to write '{path}' on disk '{disk}': {exc}", path=path) from exc
        logger.debug(
            "storage.disk.written",
            extra={"disk": disk, "path": path, "size_bytes": len(data)},
        )

    def read(self, disk: str, path: str) -> bytes:
        target = self._resolve(disk, path)
        try:
            return target.read_bytes()
        except OSError as exc:
            raise StorageError(f"failed to read '{path}' on disk '{disk}': {exc}", path=path) from exc

    def open(self, disk: str, path: str) -> BinaryIO:
        target = self._resolve(disk, path)
        try:
            return target.open("rb")
        except OSError as exc:
            raise StorageError(f"failed to open '{path}' on disk '{disk}': {exc}", path=path) from exc

    def delete(self, disk: str, path: str) -> None:
        target = self._resolve(disk, path)
        try:
            target.unlink(missing_ok=True)
        except IsADirectoryError as exc:
            raise StorageError(f"'{path}' on disk '{disk}' is a directory", path=path) from exc
        except OSError as exc:
            raise StorageError(f"failed to delete '{path}' on disk '{disk}': {exc}", path=path) from exc

    def list_files(self, disk: str, directory: str) -> list[str]:
        root = self._root(disk)
        base = self._resolve(disk, directory) if directory else root
        if not base.is_dir():
            return []
        files: list[str] = []
        for current, _dirs, names in os.walk(base):
            for name in names:
                files.append(Path(current, name).relative_to(root).as_posix())
        return sorted(files)

    def absolute_path(self, disk: str, path: str) -> str:
        return str(self._resolve(disk, path))

    def _root(self, disk: str) -> Path:
        try:
            return self._roots[disk]
        except KeyError:
            raise StorageError(f"disk '{disk}' is not configured") from None

    def _resolve(self, disk: str, path: str) -> Path:
        root = self._root(disk)
        relative = PurePosixPath(path.replace("\\", "/"))
        if relative.is_absolute() or ".." in relative.parts:
            raise StorageError(f"path '{path}' escapes disk '{disk}'", path=path)
        return root.joinpath(*relative.parts)
