"""Deletion of media records and their files, plus the orphan sweep."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from ..exceptions import MediaError, MediaValidationError, RepositoryError, StorageError
from ..repositories.interfaces import MediaRecordStore
from ..settings import MediaSettings
from ..storage.disk import DiskStorage
from .file_location import FileLocation, resolve_storage_path
from .image_pipeline import resolve_format
from .media_models import BatchFailure, BatchResult, SweepError, SweepResult
from .media_types import MediaKind, parse_kind

logger = structlog.get_logger(__name__)


class MediaDeletionService:
    """Remove files before records; batch variants isolate per-item failures."""

    def __init__(
        self,
        *,
        records: MediaRecordStore,
        disks: DiskStorage,
        settings: MediaSettings,
    ) -> None:
        self._records = records
        self._disks = disks
        self._settings = settings

    def delete_one(self, media_id: int) -> bool:
        """Delete the files of ``media_id`` and then its record.

        Missing files are treated as already removed.

        Raises:
            NotFoundError: no record with ``media_id``.
            StorageError: a file could not be removed, or the files were
                removed but the record could not be.
        """
        asset = self._records.get(media_id)
        if asset.is_local:
            self._delete_file(asset.file_location(), media_id)
        thumbnail = asset.thumbnail_location()
        if thumbnail is not None:
            self._delete_file(thumbnail, media_id)

        try:
            self._records.delete(media_id)
        except RepositoryError as exc:
            raise StorageError(
                f"files of media {media_id} were removed but its record could not be deleted",
                media_id=media_id,
                path=asset.path,
            ) from exc

        logger.info("media.delete.completed", media_id=media_id, kind=asset.kind.value)
        return True

    def delete_many(self, media_ids: Iterable[int]) -> BatchResult:
        result = BatchResult()
        for media_id in media_ids:
            try:
                self.delete_one(media_id)
            except MediaError as exc:
                logger.error("media.delete.failed", media_id=media_id, error=str(exc))
                result.failed.append(BatchFailure(id=media_id, error=str(exc)))
            else:
                result.succeeded.append(media_id)
        return result

    def delete_by_kind(
        self, kind: MediaKind | str, filters: Mapping[str, Any] | None = None
    ) -> BatchResult:
        resolved = self._enabled_kind(kind)
        assets = self._records.find_where(resolved, filters)
        return self.delete_many(asset.id for asset in assets)

    def sweep_orphans(self, kind: MediaKind | str, *, dry_run: bool = False) -> SweepResult:
        """Delete files under the kind's directory that no record points at.

        Any recorded local file on the disk is kept, whatever its kind, since
        directory overrides can place one kind's files under another's
        directory. Files under the thumbnail sub-directory are never
        considered. With ``dry_run`` the orphans are reported but left in place.
        """
        resolved = self._enabled_kind(kind)
        disk = self._settings.default_disk
        template = self._settings.storage_path_template
        directory = self._settings.kind_directory(resolved)

        recorded = {
            resolve_storage_path(template, path)
            for path in self._records.list_local_paths(disk=disk, include_thumbnails=True)
        }
        result = SweepResult(kind=resolved, dry_run=dry_run)
        for path in self._disks.list_files(disk, directory):
            if self._is_thumbnail_path(path) or path in recorded:
                continue
            if dry_run:
                result.removed.append(path)
                continue
            try:
                self._disks.delete(disk, path)
                self._delete_thumbnail_counterpart(disk, path, recorded)
            except StorageError as exc:
                logger.error("media.sweep.failed", path=path, error=str(exc))
                result.errors.append(SweepError(path=path, error=str(exc)))
            else:
                logger.info("media.sweep.removed", path=path, kind=resolved.value)
                result.removed.append(path)
        return result

    def _delete_file(self, location: FileLocation, media_id: int) -> None:
        path = location.absolute_storage_path(self._settings.storage_path_template)
        try:
            self._disks.delete(location.disk, path)
        except StorageError as exc:
            raise StorageError(
                f"failed to delete '{location.relative_path()}' of media {media_id}: {exc}",
                path=location.relative_path(),
                media_id=media_id,
            ) from exc

    def _delete_thumbnail_counterpart(self, disk: str, path: str, recorded: set[str]) -> None:
        thumbnail = FileLocation.from_relative_path(path, disk).thumbnail_location(
            extension=self._thumbnail_extension(),
            sub_directory=self._settings.thumbnail_directory,
            suffix=self._settings.thumbnail_suffix,
        )
        thumbnail_path = thumbnail.relative_path()
        if thumbnail_path not in recorded and self._disks.exists(disk, thumbnail_path):
            self._disks.delete(disk, thumbnail_path)
            logger.info("media.sweep.thumbnail_removed", path=thumbnail_path)

    def _thumbnail_extension(self) -> str:
        config = self._settings.thumbnail
        return resolve_format(config.format if config else None, None)[1]

    def _is_thumbnail_path(self, path: str) -> bool:
        return self._settings.thumbnail_directory in path.split("/")[:-1]

    def _enabled_kind(self, kind: MediaKind | str) -> MediaKind:
        resolved = parse_kind(kind)
        if not self._settings.is_enabled(resolved):
            raise MediaValidationError(f"media type '{resolved.value}' is not enabled", field="type")
        return resolved
