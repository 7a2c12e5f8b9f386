from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image

from src.medialib.media.media_deletion_service import MediaDeletionService
from src.medialib.media.media_retrieval_service import MediaRetrievalService
from src.medialib.media.media_store_service import MediaStoreService
from src.medialib.media.strategies import build_strategies
from src.medialib.repositories.media_asset_repository import MediaAssetRepository
from src.medialib.settings import MediaSettings
from src.medialib.storage.disk import LocalDiskStorage


def make_image_bytes(
    size: tuple[int, int] = (400, 300),
    fmt: str = "JPEG",
    color: tuple[int, ...] = (200, 80, 40),
    mode: str = "RGB",
) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def open_image(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


@dataclass
class MediaServices:
    settings: MediaSettings
    records: MediaAssetRepository
    disks: LocalDiskStorage
    store: MediaStoreService
    retrieval: MediaRetrievalService
    deletion: MediaDeletionService


def build_services(
    settings: MediaSettings,
    records: MediaAssetRepository,
    disks: LocalDiskStorage,
) -> MediaServices:
    strategies = build_strategies(records=records, disks=disks, settings=settings)
    return MediaServices(
        settings=settings,
        records=records,
        disks=disks,
        store=MediaStoreService(strategies=strategies, settings=settings),
        retrieval=MediaRetrievalService(records=records, strategies=strategies, settings=settings),
        deletion=MediaDeletionService(records=records, disks=disks, settings=settings),
    )
