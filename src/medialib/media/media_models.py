"""Media data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path, PurePosixPath
from typing import Any, BinaryIO

from ..exceptions import NotFoundError, StorageError
from .file_location import FileLocation
from .media_types import MediaKind, MediaSource, normalize_extension


@dataclass(slots=True)
class MediaAsset:
    """Persisted media record.

    ``path``/``disk`` are set for local assets, ``url`` for external ones.
    """

    id: int
    kind: MediaKind
    source: MediaSource
    display_name: str
    path: str | None = None
    file_name: str | None = None
    disk: str | None = None
    url: str | None = None
    thumbnail_path: str | None = None
    description: str | None = None
    date: date | None = None
    meta: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_local(self) -> bool:
        return self.source is MediaSource.LOCAL

    def file_location(self) -> FileLocation:
        if not self.is_local or not self.path or not self.disk:
            raise NotFoundError(f"media {self.id} has no local file", media_id=self.id)
        return FileLocation.from_relative_path(self.path, self.disk)

    def thumbnail_location(self) -> FileLocation | None:
        if not self.thumbnail_path or not self.disk:
            return None
        return FileLocation.from_relative_path(self.thumbnail_path, self.disk)


@dataclass(slots=True)
class MediaRecordDraft:
    """Field set handed to the record store to create a :class:`MediaAsset`."""

    kind: MediaKind
    source: MediaSource
    display_name: str
    path: str | None = None
    file_name: str | None = None
    disk: str | None = None
    url: str | None = None
    thumbnail_path: str | None = None
    description: str | None = None
    date: date | None = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LocalMediaRequest:
    """Upload of raw bytes to be stored on a disk."""

    payload: bytes
    original_filename: str
    kind: MediaKind | str | None = None
    name: str | None = None
    description: str | None = None
    date: date | None = None
    file_name: str | None = None
    directory: str | None = None
    disk: str | None = None
    content_type: str | None = None
    generate_thumbnail: bool = False
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def extension(self) -> str:
        return normalize_extension(PurePosixPath(self.original_filename).suffix)

    @property
    def stem(self) -> str:
        return PurePosixPath(self.original_filename).stem

    @property
    def size_bytes(self) -> int:
        return len(self.payload)


@dataclass(frozen=True, slots=True)
class ExternalMediaRequest:
    """Reference to media hosted elsewhere; nothing is written to disk."""

    url: str
    name: str
    kind: MediaKind | str | None = None
    description: str | None = None
    date: date | None = None
    meta: dict[str, Any] = field(default_factory=dict)


MediaRequest = LocalMediaRequest | ExternalMediaRequest


@dataclass(slots=True)
class MediaFile:
    """Resolved file ready for streaming."""

    path: Path
    content_type: str
    file_name: str

    def open(self) -> BinaryIO:
        try:
            return self.path.open("rb")
        except FileNotFoundError as exc:
            raise NotFoundError(f"file '{self.file_name}' is missing", path=str(self.path)) from exc
        except OSError as exc:
            raise StorageError(f"failed to open '{self.file_name}': {exc}", path=str(self.path)) from exc


@dataclass(slots=True)
class ThumbnailOutcome:
    """Result of a thumbnail derivation attempt."""

    location: FileLocation | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.location is not None

    @classmethod
    def created(cls, location: FileLocation) -> "ThumbnailOutcome":
        return cls(location=location)

    @classmethod
    def failed(cls, error: str) -> "ThumbnailOutcome":
        return cls(error=error)


@dataclass(slots=True)
class BatchFailure:
    id: int
    error: str


@dataclass(slots=True)
class BatchResult:
    """Outcome of a bulk deletion; one entry per requested id."""

    succeeded: list[int] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": list(self.succeeded),
            "failed": [{"id": item.id, "error": item.error} for item in self.failed],
        }


@dataclass(slots=True)
class SweepError:
    path: str
    error: str


@dataclass(slots=True)
class SweepResult:
    """Outcome of an orphan sweep over a kind's storage directory."""

    kind: MediaKind
    removed: list[str] = field(default_factory=list)
    errors: list[SweepError] = field(default_factory=list)
    dry_run: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "removed": list(self.removed),
            "errors": [{"path": item.path, "error": item.error} for item in self.errors],
            "dry_run": self.dry_run,
        }
