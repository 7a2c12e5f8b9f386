"""Pydantic schemas for media API responses."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, Field

from ..media.media_models import MediaAsset
from ..media.media_retrieval_service import MediaPage


class MediaAssetSchema(BaseModel):
    id: int
    type: str
    source: str
    name: str
    path: str | None = None
    file_name: str | None = None
    disk: str | None = None
    url: str | None = None
    thumbnail_path: str | None = None
    description: str | None = None
    date: dt.date | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: dt.datetime | None = None

    @classmethod
    def from_domain(cls, asset: MediaAsset) -> "MediaAssetSchema":
        return cls(
            id=asset.id,
            type=asset.kind.value,
            source=asset.source.value,
            name=asset.display_name,
            path=asset.path,
            file_name=asset.file_name,
            disk=asset.disk,
            url=asset.url,
            thumbnail_path=asset.thumbnail_path,
            description=asset.description,
            date=asset.date,
            meta=asset.meta,
            created_at=asset.created_at,
        )


class MediaPageSchema(BaseModel):
    items: list[MediaAssetSchema]
    total: int
    limit: int
    offset: int

    @classmethod
    def from_page(cls, page: MediaPage) -> "MediaPageSchema":
        return cls(
            items=[MediaAssetSchema.from_domain(item) for item in page.items],
            total=page.total,
            limit=page.limit,
            offset=page.offset,
        )


class MediaKindSchema(BaseModel):
    value: str
    label: str


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(min_length=1)


class BatchFailureSchema(BaseModel):
    id: int
    error: str


class BatchResultSchema(BaseModel):
    succeeded: list[int]
    failed: list[BatchFailureSchema]


class SweepErrorSchema(BaseModel):
    path: str
    error: str


class SweepResultSchema(BaseModel):
    kind: str
    removed: list[str]
    errors: list[SweepErrorSchema]
    dry_run: bool
