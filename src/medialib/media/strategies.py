"""Per-kind ingestion and retrieval strategies.

Each :class:`MediaKind` maps to exactly one strategy class through
:data:`STRATEGY_CLASSES`; :func:`build_strategies` refuses to build a
registry that misses a kind.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import urlparse

from ..exceptions import (
    MediaError,
    NotFoundError,
    StorageError,
    ThumbnailDerivationError,
)
from ..repositories.interfaces import MediaRecordStore
from ..settings import MediaSettings
from ..storage.disk import DiskStorage
from .file_location import FileLocation, normalize_directory
from .image_pipeline import ImageTransformPipeline
from .media_models import (
    ExternalMediaRequest,
    LocalMediaRequest,
    MediaAsset,
    MediaFile,
    MediaRecordDraft,
    ThumbnailOutcome,
)
from .media_types import MediaKind, MediaSource, content_type_for
from .naming import FilenameAllocator

logger = logging.getLogger(__name__)


class MediaTypeStrategy(Protocol):
    """Capability interface shared by every per-kind strategy."""

    kind: MediaKind

    def store_local(self, request: LocalMediaRequest) -> MediaAsset:
        ...

    def store_external(self, request: ExternalMediaRequest) -> MediaAsset:
        ...

    def fetch_primary(self, asset: MediaAsset) -> MediaFile:
        ...

    def supports_thumbnail(self) -> bool:
        ...

    def fetch_thumbnail(self, asset: MediaAsset) -> MediaFile | None:
        ...


class BaseMediaStrategy:
    """Store payloads verbatim; shared by every kind."""

    kind: MediaKind

    def __init__(
        self,
        *,
        records: MediaRecordStore,
        disks: DiskStorage,
        settings: MediaSettings,
        allocator: FilenameAllocator | None = None,
    ) -> None:
        self.records = records
        self.disks = disks
        self.settings = settings
        self.allocator = allocator or FilenameAllocator(
            disks, storage_template=settings.storage_path_template
        )

    def supports_thumbnail(self) -> bool:
        return self.kind.supports_thumbnails

    def store_local(self, request: LocalMediaRequest) -> MediaAsset:
        disk = request.disk or self.settings.default_disk
        directory = normalize_directory(
            self.kind.value if request.directory is None else request.directory
        )
        payload, extension, processing_meta = self.prepare_payload(request)

        explicit = request.file_name is not None
        desired = request.file_name if explicit else (request.name or request.stem)
        location = self.allocator.allocate_location(
            disk, directory, desired, extension, explicit=explicit
        )
        self._write(location, payload)

        thumbnail = self.after_write(request, location, payload)
        meta: dict[str, Any] = {
            **request.meta,
            "original_name": request.original_filename,
            "size": request.size_bytes,
            "mime_type": request.content_type or content_type_for(request.extension),
            **processing_meta,
        }
        draft = MediaRecordDraft(
            kind=self.kind,
            source=MediaSource.LOCAL,
            display_name=request.name or request.stem,
            path=location.relative_path(),
            file_name=location.file_name(),
            disk=disk,
            thumbnail_path=thumbnail.location.relative_path() if thumbnail.ok else None,
            description=request.description,
            date=request.date or date.today(),
            meta=meta,
        )
        try:
            asset = self.records.create(draft)
        except MediaError:
            self._discard(location)
            if thumbnail.ok:
                self._discard(thumbnail.location)
            raise

        logger.info(
            "media.store.completed",
            extra={
                "media_id": asset.id,
                "kind": self.kind.value,
                "path": asset.path,
                "thumbnail_path": asset.thumbnail_path,
            },
        )
        return asset

    def store_external(self, request: ExternalMediaRequest) -> MediaAsset:
        meta = {**request.meta, "host": urlparse(request.url).hostname}
        draft = MediaRecordDraft(
            kind=self.kind,
            source=MediaSource.EXTERNAL,
            display_name=request.name,
            url=request.url,
            description=request.description,
            date=request.date or date.today(),
            meta=meta,
        )
        asset = self.records.create(draft)
        logger.info(
            "media.store.external",
            extra={"media_id": asset.id, "kind": self.kind.value, "host": meta["host"]},
        )
        return asset

    def fetch_primary(self, asset: MediaAsset) -> MediaFile:
        if not asset.is_local:
            raise NotFoundError(
                f"media {asset.id} is external and has no stored file", media_id=asset.id
            )
        location = asset.file_location()
        media_file = self._resolve(location)
        if media_file is None:
            raise NotFoundError(
                f"file for media {asset.id} is missing on disk",
                media_id=asset.id,
                path=location.relative_path(),
            )
        return media_file

    def fetch_thumbnail(self, asset: MediaAsset) -> MediaFile | None:
        if not self.supports_thumbnail():
            return None
        location = asset.thumbnail_location()
        if location is None:
            return None
        return self._resolve(location)

    def prepare_payload(
        self, request: LocalMediaRequest
    ) -> tuple[bytes, str, dict[str, Any]]:
        """Return the bytes to write, their extension and extra meta entries."""
        return request.payload, request.extension, {}

    def after_write(
        self, request: LocalMediaRequest, location: FileLocation, payload: bytes
    ) -> ThumbnailOutcome:
        return ThumbnailOutcome()

    def storage_path(self, location: FileLocation) -> str:
        return location.absolute_storage_path(self.settings.storage_path_template)

    def _write(self, location: FileLocation, payload: bytes) -> None:
        self.disks.write(location.disk, self.storage_path(location), payload)

    def _discard(self, location: FileLocation) -> None:
        try:
            self.disks.delete(location.disk, self.storage_path(location))
        except StorageError:
            logger.exception(
                "media.store.rollback_failed",
                extra={"disk": location.disk, "path": location.relative_path()},
            )

    def _resolve(self, location: FileLocation) -> MediaFile | None:
        path = self.storage_path(location)
        if not self.disks.exists(location.disk, path):
            return None
        return MediaFile(
            path=Path(self.disks.absolute_path(location.disk, path)),
            content_type=content_type_for(location.extension),
            file_name=location.file_name(),
        )


class ImageMediaStrategy(BaseMediaStrategy):
    kind = MediaKind.IMAGE

    def __init__(self, *, pipeline: ImageTransformPipeline | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.pipeline = pipeline or ImageTransformPipeline()

    def prepare_payload(
        self, request: LocalMediaRequest
    ) -> tuple[bytes, str, dict[str, Any]]:
        result = self.pipeline.transform(
            request.payload, self.settings.image, source_extension=request.extension
        )
        meta = {"processed": result.transformed, "final_extension": result.extension}
        return result.data, result.extension, meta

    def after_write(
        self, request: LocalMediaRequest, location: FileLocation, payload: bytes
    ) -> ThumbnailOutcome:
        if not self.settings.thumbnails_enabled:
            return ThumbnailOutcome()
        if not (request.generate_thumbnail or self.settings.generate_thumbnails_always):
            return ThumbnailOutcome()
        return self.derive_thumbnail(location, payload)

    def derive_thumbnail(self, location: FileLocation, payload: bytes) -> ThumbnailOutcome:
        """Render and write the thumbnail for ``location``.

        Failures are reported in the outcome; they never abort the store.
        """
        try:
            rendered = self.pipeline.render_thumbnail(payload, self.settings.thumbnail)
            thumb = location.thumbnail_location(
                extension=rendered.extension,
                sub_directory=self.settings.thumbnail_directory,
                suffix=self.settings.thumbnail_suffix,
            )
            self._write(thumb, rendered.data)
        except (ThumbnailDerivationError, StorageError) as exc:
            logger.warning(
                "media.thumbnail.failed",
                extra={"path": location.relative_path(), "error": str(exc)},
            )
            return ThumbnailOutcome.failed(str(exc))
        logger.debug(
            "media.thumbnail.created",
            extra={"path": location.relative_path(), "thumbnail_path": thumb.relative_path()},
        )
        return ThumbnailOutcome.created(thumb)


class VideoMediaStrategy(BaseMediaStrategy):
    kind = MediaKind.VIDEO


class AudioMediaStrategy(BaseMediaStrategy):
    kind = MediaKind.AUDIO


class DocumentMediaStrategy(BaseMediaStrategy):
    kind = MediaKind.DOCUMENT


STRATEGY_CLASSES: dict[MediaKind, type[BaseMediaStrategy]] = {
    MediaKind.IMAGE: ImageMediaStrategy,
    MediaKind.VIDEO: VideoMediaStrategy,
    MediaKind.AUDIO: AudioMediaStrategy,
    MediaKind.DOCUMENT: DocumentMediaStrategy,
}


def build_strategies(
    *,
    records: MediaRecordStore,
    disks: DiskStorage,
    settings: MediaSettings,
    pipeline: ImageTransformPipeline | None = None,
) -> dict[MediaKind, MediaTypeStrategy]:
    """Instantiate one strategy per media kind."""
    missing = set(MediaKind) - set(STRATEGY_CLASSES)
    if missing:
        raise RuntimeError(f"no strategy registered for: {sorted(k.value for k in missing)}")

    allocator = FilenameAllocator(disks, storage_template=settings.storage_path_template)
    strategies: dict[MediaKind, MediaTypeStrategy] = {}
    for kind, strategy_cls in STRATEGY_CLASSES.items():
        kwargs: dict[str, Any] = {
            "records": records,
            "disks": disks,
            "settings": settings,
            "allocator": allocator,
        }
        if strategy_cls is ImageMediaStrategy:
            kwargs["pipeline"] = pipeline
        strategies[kind] = strategy_cls(**kwargs)
    return strategies
