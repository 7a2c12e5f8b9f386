"""Repository interfaces for persistence layer implementations."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol

from ..media.media_models import MediaAsset, MediaRecordDraft
from ..media.media_types import MediaKind


class MediaRecordStore(Protocol):
    """Persistence operations for media asset records."""

    def create(self, draft: MediaRecordDraft) -> MediaAsset:
        """Persist ``draft`` and return the stored record with its id."""

    def get(self, media_id: int) -> MediaAsset:
        """Return a record by id or raise ``NotFoundError``."""

    def find_where(
        self, kind: MediaKind, filters: Mapping[str, Any] | None = None
    ) -> list[MediaAsset]:
        """Return records of ``kind`` matching every equality filter."""

    def delete(self, media_id: int) -> None:
        """Remove a record by id or raise ``NotFoundError``."""

    def list_by_kind(
        self, kind: MediaKind, *, limit: int = 20, offset: int = 0
    ) -> tuple[list[MediaAsset], int]:
        """Return a newest-first page of records and the total count."""

    def search(
        self,
        term: str,
        *,
        kinds: Iterable[MediaKind] | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[MediaAsset], int]:
        """Full-text-ish search over display name and description."""

    def find_local_by_file_name(self, kind: MediaKind, file_name: str) -> MediaAsset:
        """Return the oldest local asset of ``kind`` stored as ``file_name``."""

    def list_local_paths(
        self,
        kind: MediaKind | None = None,
        *,
        disk: str | None = None,
        include_thumbnails: bool = False,
    ) -> set[str]:
        """Return recorded relative paths of local assets, optionally of one ``kind``."""
