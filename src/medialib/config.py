"""Application configuration builder."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db
from .settings import MediaSettings
from .storage.disk import LocalDiskStorage


@dataclass(slots=True)
class AppConfig:
    settings: MediaSettings
    disks: LocalDiskStorage
    engine: Engine
    session_factory: sessionmaker[Session]


def load_config(settings: MediaSettings | None = None) -> AppConfig:
    """Load configuration from ``MEDIA_*`` environment (SQLite by default)."""
    media_settings = settings or MediaSettings()

    disks = LocalDiskStorage(media_settings.disk_roots)
    disks.ensure_roots()

    connect_args = {}
    if media_settings.database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(media_settings.database_url, future=True, connect_args=connect_args)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)

    init_db(engine)

    return AppConfig(
        settings=media_settings,
        disks=disks,
        engine=engine,
        session_factory=session_factory,
    )
