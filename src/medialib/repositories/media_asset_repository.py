"""Persistence layer for media_asset records."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Iterable, Mapping

from sqlalchemy import and_, func, or_, select, true
from sqlalchemy.orm import Session

from ..db.db_models import MediaAssetModel
from ..exceptions import MediaValidationError, ensure_found, handle_sqlalchemy_errors
from ..media.media_models import MediaAsset, MediaRecordDraft
from ..media.media_types import MediaKind, MediaSource

# Columns callers may use as extra equality filters.
FILTERABLE_COLUMNS = frozenset(
    {"source", "path", "file_name", "disk", "url", "thumbnail_path", "display_name", "description", "date"}
)


class MediaAssetRepository:
    """Store metadata about media assets."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create(self, draft: MediaRecordDraft) -> MediaAsset:
        with handle_sqlalchemy_errors(entity="media_asset"), self._session_factory() as session:
            model = MediaAssetModel(
                kind=draft.kind.value,
                source=draft.source.value,
                path=draft.path,
                file_name=draft.file_name,
                disk=draft.disk,
                url=draft.url,
                thumbnail_path=draft.thumbnail_path,
                display_name=draft.display_name,
                description=draft.description,
                date=draft.date,
                meta=dict(draft.meta),
            )
            session.add(model)
            session.commit()
            session.refresh(model)
            return self._to_domain(model)

    def get(self, media_id: int) -> MediaAsset:
        with handle_sqlalchemy_errors(entity="media_asset"), self._session_factory() as session:
            model = session.get(MediaAssetModel, media_id)
            ensure_found(model, entity="media", identifier=media_id)
            return self._to_domain(model)

    def find_where(
        self, kind: MediaKind, filters: Mapping[str, Any] | None = None
    ) -> list[MediaAsset]:
        conditions = [MediaAssetModel.kind == kind.value]
        for column, value in (filters or {}).items():
            if column not in FILTERABLE_COLUMNS:
                raise MediaValidationError(f"unknown filter column '{column}'", field=column)
            if isinstance(value, MediaSource):
                value = value.value
            conditions.append(getattr(MediaAssetModel, column) == value)

        with handle_sqlalchemy_errors(entity="media_asset"), self._session_factory() as session:
            rows = session.scalars(
                select(MediaAssetModel).where(and_(*conditions)).order_by(MediaAssetModel.id)
            ).all()
            return [self._to_domain(row) for row in rows]

    def delete(self, media_id: int) -> None:
        with handle_sqlalchemy_errors(entity="media_asset"), self._session_factory() as session:
            model = session.get(MediaAssetModel, media_id)
            ensure_found(model, entity="media", identifier=media_id)
            session.delete(model)
            session.commit()

    def list_by_kind(
        self, kind: MediaKind, *, limit: int = 20, offset: int = 0
    ) -> tuple[list[MediaAsset], int]:
        condition = MediaAssetModel.kind == kind.value
        return self._page(condition, limit=limit, offset=offset)

    def search(
        self,
        term: str,
        *,
        kinds: Iterable[MediaKind] | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[MediaAsset], int]:
        conditions = []
        for word in term.split():
            pattern = f"%{word.lower()}%"
            conditions.append(
                or_(
                    func.lower(MediaAssetModel.display_name).like(pattern),
                    func.lower(func.coalesce(MediaAssetModel.description, "")).like(pattern),
                )
            )
        if kinds is not None:
            conditions.append(MediaAssetModel.kind.in_([kind.value for kind in kinds]))
        condition = and_(*conditions) if conditions else true()
        return self._page(condition, limit=limit, offset=offset)

    def find_local_by_file_name(self, kind: MediaKind, file_name: str) -> MediaAsset:
        with handle_sqlalchemy_errors(entity="media_asset"), self._session_factory() as session:
            model = session.scalars(
                select(MediaAssetModel)
                .where(
                    MediaAssetModel.kind == kind.value,
                    MediaAssetModel.source == MediaSource.LOCAL.value,
                    MediaAssetModel.file_name == file_name,
                )
                .order_by(MediaAssetModel.id)
                .limit(1)
            ).first()
            ensure_found(model, entity=f"{kind.value} file", identifier=file_name)
            return self._to_domain(model)

    def list_local_paths(
        self,
        kind: MediaKind | None = None,
        *,
        disk: str | None = None,
        include_thumbnails: bool = False,
    ) -> set[str]:
        conditions = [
            MediaAssetModel.source == MediaSource.LOCAL.value,
            MediaAssetModel.path.is_not(None),
        ]
        if kind is not None:
            conditions.append(MediaAssetModel.kind == kind.value)
        if disk is not None:
            conditions.append(MediaAssetModel.disk == disk)
        columns = [MediaAssetModel.path, MediaAssetModel.thumbnail_path]
        with handle_sqlalchemy_errors(entity="media_asset"), self._session_factory() as session:
            rows = session.execute(select(*columns).where(*conditions)).all()
        paths = {row.path for row in rows}
        if include_thumbnails:
            paths.update(row.thumbnail_path for row in rows if row.thumbnail_path)
        return paths

    def _page(self, condition, *, limit: int, offset: int) -> tuple[list[MediaAsset], int]:
        with handle_sqlalchemy_errors(entity="media_asset"), self._session_factory() as session:
            total = session.scalar(
                select(func.count()).select_from(MediaAssetModel).where(condition)
            )
            rows = session.scalars(
                select(MediaAssetModel)
                .where(condition)
                .order_by(MediaAssetModel.created_at.desc(), MediaAssetModel.id.desc())
                .limit(limit)
                .offset(offset)
            ).all()
            return [self._to_domain(row) for row in rows], int(total or 0)

    @staticmethod
    def _to_domain(model: MediaAssetModel) -> MediaAsset:
        return MediaAsset(
            id=model.id,
            kind=MediaKind(model.kind),
            source=MediaSource(model.source),
            display_name=model.display_name,
            path=model.path,
            file_name=model.file_name,
            disk=model.disk,
            url=model.url,
            thumbnail_path=model.thumbnail_path,
            description=model.description,
            date=model.date,
            meta=dict(model.meta or {}),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
