from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.medialib.db.db_init import init_db
from src.medialib.repositories.media_asset_repository import MediaAssetRepository
from src.medialib.settings import MediaSettings
from src.medialib.storage.disk import LocalDiskStorage
from tests.helpers.media import MediaServices, build_services


@pytest.fixture()
def disk_root(tmp_path: Path) -> Path:
    root = tmp_path / "disk"
    root.mkdir()
    return root


@pytest.fixture()
def media_settings(disk_root: Path) -> MediaSettings:
    return MediaSettings(database_url="sqlite:///:memory:", disk_roots={"public": disk_root})


@pytest.fixture()
def disks(media_settings: MediaSettings) -> LocalDiskStorage:
    return LocalDiskStorage(media_settings.disk_roots)


@pytest.fixture()
def session_factory() -> sessionmaker:
    engine = create_engine("sqlite:///:memory:", future=True)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    init_db(engine)
    return factory


@pytest.fixture()
def records(session_factory) -> MediaAssetRepository:
    return MediaAssetRepository(session_factory)


@pytest.fixture()
def services(media_settings, records, disks) -> MediaServices:
    return build_services(media_settings, records, disks)
