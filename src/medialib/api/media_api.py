"""HTTP routes for media storage, retrieval and deletion."""

from __future__ import annotations

import datetime as dt
import logging
import os
from collections.abc import Iterator
from typing import BinaryIO
from urllib.parse import quote

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from ..exceptions import MediaValidationError
from ..media.media_deletion_service import MediaDeletionService
from ..media.media_models import ExternalMediaRequest, LocalMediaRequest, MediaFile
from ..media.media_retrieval_service import MediaRetrievalService
from ..media.media_store_service import MediaStoreService
from .media_schemas import (
    BatchResultSchema,
    BulkDeleteRequest,
    MediaAssetSchema,
    MediaKindSchema,
    MediaPageSchema,
    SweepResultSchema,
)

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024


def _parse_date(value: str | None) -> dt.date | None:
    if not value:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise MediaValidationError(f"invalid date '{value}'", field="date") from None


def build_media_router(
    *,
    store_service: MediaStoreService,
    retrieval_service: MediaRetrievalService,
    deletion_service: MediaDeletionService,
) -> APIRouter:
    router = APIRouter(prefix="/api/media", tags=["media"])

    @router.get("/types", response_model=list[MediaKindSchema])
    def list_types():
        return retrieval_service.enabled_kinds()

    @router.get("/type/{kind}", response_model=MediaPageSchema)
    def list_by_kind(
        kind: str,
        limit: int = Query(20, ge=1, le=100),
        offset: int = Query(0, ge=0),
    ):
        page = retrieval_service.list_by_kind(kind, limit=limit, offset=offset)
        return MediaPageSchema.from_page(page)

    @router.get("/search", response_model=MediaPageSchema)
    def search(
        q: str = Query(..., min_length=1),
        type: str | None = Query(None),
        limit: int = Query(20, ge=1, le=100),
        offset: int = Query(0, ge=0),
    ):
        page = retrieval_service.search(q, kind=type, limit=limit, offset=offset)
        return MediaPageSchema.from_page(page)

    @router.post("/upload", response_model=MediaAssetSchema, status_code=status.HTTP_201_CREATED)
    async def upload(
        file: UploadFile | None = File(None),
        url: str | None = Form(None),
        type: str | None = Form(None),
        name: str | None = Form(None),
        description: str | None = Form(None),
        date: str | None = Form(None),
        file_name: str | None = Form(None),
        directory: str | None = Form(None),
        generate_thumbnail: bool = Form(False),
    ):
        if file is None and not url:
            raise MediaValidationError("either file or url is required", field="file")
        if file is not None and url:
            raise MediaValidationError("provide either file or url, not both", field="url")

        if file is not None:
            request = LocalMediaRequest(
                payload=await file.read(),
                original_filename=file.filename or "",
                kind=type,
                name=name,
                description=description,
                date=_parse_date(date),
                file_name=file_name,
                directory=directory,
                content_type=file.content_type,
                generate_thumbnail=generate_thumbnail,
            )
        else:
            request = ExternalMediaRequest(
                url=url or "",
                name=name or "",
                kind=type,
                description=description,
                date=_parse_date(date),
            )
        asset = store_service.store(request)
        return MediaAssetSchema.from_domain(asset)

    @router.post("/bulk-delete", response_model=BatchResultSchema)
    def bulk_delete(payload: BulkDeleteRequest):
        return deletion_service.delete_many(payload.ids).to_dict()

    @router.delete("/type/{kind}", response_model=BatchResultSchema)
    def delete_by_kind(kind: str):
        return deletion_service.delete_by_kind(kind).to_dict()

    @router.post("/cleanup/{kind}", response_model=SweepResultSchema)
    def cleanup(kind: str, dry_run: bool = Query(False)):
        result = deletion_service.sweep_orphans(kind, dry_run=dry_run)
        logger.info(
            "media.api.cleanup",
            extra={"kind": result.kind.value, "removed": len(result.removed), "errors": len(result.errors)},
        )
        return result.to_dict()

    @router.get("/{media_id}", response_model=MediaAssetSchema)
    def get_media(media_id: int):
        return MediaAssetSchema.from_domain(retrieval_service.get(media_id))

    @router.delete("/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_media(media_id: int) -> None:
        deletion_service.delete_one(media_id)

    return router


def _iter_chunks(handle: BinaryIO) -> Iterator[bytes]:
    with handle:
        while True:
            chunk = handle.read(STREAM_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


def stream_media_file(media_file: MediaFile, *, cache_control: str) -> StreamingResponse:
    """Open ``media_file`` up front; a file gone since lookup raises :class:`NotFoundError`."""
    handle = media_file.open()
    quoted = quote(media_file.file_name)
    if quoted == media_file.file_name:
        disposition = f'inline; filename="{media_file.file_name}"'
    else:
        disposition = f"inline; filename*=utf-8''{quoted}"
    headers = {
        "Cache-Control": cache_control,
        "Content-Disposition": disposition,
        "Content-Length": str(os.fstat(handle.fileno()).st_size),
    }
    return StreamingResponse(
        _iter_chunks(handle), media_type=media_file.content_type, headers=headers
    )


def build_media_files_router(
    retrieval_service: MediaRetrievalService,
    *,
    cache_max_age_seconds: int,
) -> APIRouter:
    router = APIRouter(prefix="/media", tags=["media-files"])
    cache_control = f"public, max-age={cache_max_age_seconds}"

    @router.get("/{media_id}/file")
    def serve_file(media_id: int):
        return stream_media_file(retrieval_service.fetch_primary(media_id), cache_control=cache_control)

    @router.get("/{media_id}/thumbnail")
    def serve_thumbnail(media_id: int):
        return stream_media_file(retrieval_service.fetch_thumbnail(media_id), cache_control=cache_control)

    @router.get("/{kind}/thumbnails/{file_name}")
    def serve_thumbnail_by_name(kind: str, file_name: str):
        media_file = retrieval_service.fetch_thumbnail_by_name(kind, file_name)
        return stream_media_file(media_file, cache_control=cache_control)

    @router.get("/{kind}/{file_name}")
    def serve_file_by_name(kind: str, file_name: str):
        media_file = retrieval_service.fetch_primary_by_name(kind, file_name)
        return stream_media_file(media_file, cache_control=cache_control)

    return router
