"""Database models and initialization."""

from .db_init import init_db
from .db_models import Base, MediaAssetModel

__all__ = ["Base", "MediaAssetModel", "init_db"]
