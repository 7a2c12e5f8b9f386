"""Lookup and streaming of stored media."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from ..exceptions import MediaValidationError, NotFoundError
from ..repositories.interfaces import MediaRecordStore
from ..settings import MediaSettings
from .media_models import MediaAsset, MediaFile
from .media_types import MediaKind, parse_kind
from .strategies import MediaTypeStrategy


@dataclass(slots=True)
class MediaPage:
    items: list[MediaAsset]
    total: int
    limit: int
    offset: int


class MediaRetrievalService:
    """Resolve records to files through the strategy for their kind."""

    def __init__(
        self,
        *,
        records: MediaRecordStore,
        strategies: Mapping[MediaKind, MediaTypeStrategy],
        settings: MediaSettings,
    ) -> None:
        self._records = records
        self._strategies = strategies
        self._settings = settings

    def get(self, media_id: int) -> MediaAsset:
        return self._records.get(media_id)

    def fetch_primary(self, media_id: int) -> MediaFile:
        """Return the stored file of ``media_id``.

        Raises:
            NotFoundError: unknown id, external asset, or file missing on disk.
        """
        return self._primary_of(self._records.get(media_id))

    def fetch_thumbnail(self, media_id: int) -> MediaFile:
        return self._thumbnail_of(self._records.get(media_id))

    def fetch_primary_by_name(self, kind: MediaKind | str, file_name: str) -> MediaFile:
        """Return the stored file of the local ``kind`` asset named ``file_name``."""
        return self._primary_of(self._find_by_name(kind, file_name))

    def fetch_thumbnail_by_name(self, kind: MediaKind | str, file_name: str) -> MediaFile:
        return self._thumbnail_of(self._find_by_name(kind, file_name))

    def _find_by_name(self, kind: MediaKind | str, file_name: str) -> MediaAsset:
        return self._records.find_local_by_file_name(self._enabled_kind(kind), file_name)

    def _primary_of(self, asset: MediaAsset) -> MediaFile:
        return self._strategies[asset.kind].fetch_primary(asset)

    def _thumbnail_of(self, asset: MediaAsset) -> MediaFile:
        strategy = self._strategies[asset.kind]
        if not strategy.supports_thumbnail():
            raise NotFoundError(
                f"media type '{asset.kind.value}' has no thumbnails", media_id=asset.id
            )
        media_file = strategy.fetch_thumbnail(asset)
        if media_file is None:
            raise NotFoundError(f"media {asset.id} has no thumbnail", media_id=asset.id)
        return media_file

    def list_by_kind(self, kind: MediaKind | str, *, limit: int = 20, offset: int = 0) -> MediaPage:
        resolved = self._enabled_kind(kind)
        items, total = self._records.list_by_kind(resolved, limit=limit, offset=offset)
        return MediaPage(items=items, total=total, limit=limit, offset=offset)

    def search(
        self,
        term: str,
        *,
        kind: MediaKind | str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> MediaPage:
        kinds = [self._enabled_kind(kind)] if kind else list(self._settings.enabled_kinds)
        items, total = self._records.search(term, kinds=kinds, limit=limit, offset=offset)
        return MediaPage(items=items, total=total, limit=limit, offset=offset)

    def enabled_kinds(self) -> list[dict[str, str]]:
        return [
            {"value": kind.value, "label": kind.label}
            for kind in MediaKind
            if self._settings.is_enabled(kind)
        ]

    def _enabled_kind(self, kind: MediaKind | str) -> MediaKind:
        resolved = parse_kind(kind)
        if not self._settings.is_enabled(resolved):
            raise MediaValidationError(f"media type '{resolved.value}' is not enabled", field="type")
        return resolved
