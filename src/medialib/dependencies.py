"""Dependency wiring helpers."""

from fastapi import FastAPI

from .api.errors import media_error_handler
from .api.media_api import build_media_files_router, build_media_router
from .config import AppConfig
from .exceptions import MediaError
from .media.image_pipeline import ImageTransformPipeline
from .media.media_deletion_service import MediaDeletionService
from .media.media_retrieval_service import MediaRetrievalService
from .media.media_store_service import MediaStoreService
from .media.strategies import build_strategies
from .repositories.media_asset_repository import MediaAssetRepository


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount module routers and attach services."""
    settings = config.settings
    records = MediaAssetRepository(config.session_factory)
    strategies = build_strategies(
        records=records,
        disks=config.disks,
        settings=settings,
        pipeline=ImageTransformPipeline(),
    )

    store_service = MediaStoreService(strategies=strategies, settings=settings)
    retrieval_service = MediaRetrievalService(
        records=records, strategies=strategies, settings=settings
    )
    deletion_service = MediaDeletionService(records=records, disks=config.disks, settings=settings)

    app.state.config = config
    app.state.media_repo = records
    app.state.store_service = store_service
    app.state.retrieval_service = retrieval_service
    app.state.deletion_service = deletion_service

    app.add_exception_handler(MediaError, media_error_handler)
    app.include_router(
        build_media_router(
            store_service=store_service,
            retrieval_service=retrieval_service,
            deletion_service=deletion_service,
        )
    )
    app.include_router(
        build_media_files_router(
            retrieval_service, cache_max_age_seconds=settings.cache_max_age_seconds
        )
    )
