"""HTTP layer for the media library."""

from .errors import media_error_handler
from .media_api import build_media_files_router, build_media_router

__all__ = ["build_media_files_router", "build_media_router", "media_error_handler"]
