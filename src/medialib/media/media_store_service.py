"""Validation and dispatch of incoming media requests."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import PurePosixPath
from urllib.parse import urlparse

from ..exceptions import MediaValidationError
from ..settings import MediaSettings
from .media_models import ExternalMediaRequest, LocalMediaRequest, MediaAsset, MediaRequest
from .media_types import MediaKind, detect_kind, normalize_extension, parse_kind
from .naming import validate_explicit_name
from .strategies import MediaTypeStrategy

logger = logging.getLogger(__name__)

ALLOWED_URL_SCHEMES = frozenset({"http", "https"})


class MediaStoreService:
    """Validate requests and hand them to the strategy for their kind.

    Every check runs before any disk or record-store side effect.
    """

    def __init__(
        self,
        *,
        strategies: Mapping[MediaKind, MediaTypeStrategy],
        settings: MediaSettings,
    ) -> None:
        self._strategies = strategies
        self._settings = settings

    def store(self, request: MediaRequest) -> MediaAsset:
        if isinstance(request, LocalMediaRequest):
            kind = self.validate_local(request)
            return self._strategy(kind).store_local(request)
        if isinstance(request, ExternalMediaRequest):
            kind = self.validate_external(request)
            return self._strategy(kind).store_external(request)
        raise MediaValidationError(f"unsupported request type {type(request).__name__}")

    def validate_local(self, request: LocalMediaRequest) -> MediaKind:
        """Check a local upload and return the kind it will be stored as."""
        extension = request.extension
        if not extension:
            raise MediaValidationError(
                f"file '{request.original_filename}' has no extension", field="file"
            )
        self._check_banned(extension)

        kind = self._resolve_kind(request.kind, extension)
        rules = self._settings.rules_for(kind)
        if rules is not None:
            if extension not in {normalize_extension(item) for item in rules.extensions}:
                raise MediaValidationError(
                    f"extension '{extension}' is not allowed for {kind.value}",
                    field="file",
                    extension=extension,
                )
            content_type = (request.content_type or "").split(";")[0].strip().lower()
            if content_type and content_type not in {item.lower() for item in rules.content_types}:
                raise MediaValidationError(
                    f"content type '{content_type}' is not allowed for {kind.value}",
                    field="file",
                    extension=extension,
                )
            if request.size_bytes > rules.max_size_kb * 1024:
                raise MediaValidationError(
                    f"file exceeds the {rules.max_size_kb} KB limit for {kind.value}",
                    field="file",
                    extension=extension,
                )
        if not request.payload:
            raise MediaValidationError("file is empty", field="file", extension=extension)

        self._check_length("name", request.name, self._settings.max_name_length)
        self._check_length(
            "description", request.description, self._settings.max_description_length
        )
        self._check_length("directory", request.directory, self._settings.max_directory_length)
        self._check_directory(request.directory)
        if request.disk is not None and request.disk not in self._settings.disk_roots:
            raise MediaValidationError(f"disk '{request.disk}' is not configured", field="disk")
        if request.file_name is not None:
            validate_explicit_name(request.file_name)
            self._check_length("file_name", request.file_name, self._settings.max_name_length)
        return kind

    def validate_external(self, request: ExternalMediaRequest) -> MediaKind:
        url = (request.url or "").strip()
        if not url:
            raise MediaValidationError("url is required", field="url")
        self._check_length("url", url, self._settings.max_url_length)
        parsed = urlparse(url)
        if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES or not parsed.hostname:
            raise MediaValidationError(f"'{url}' is not a valid http(s) URL", field="url")
        if not (request.name or "").strip():
            raise MediaValidationError("name is required for external media", field="name")
        self._check_length("name", request.name, self._settings.max_name_length)
        self._check_length(
            "description", request.description, self._settings.max_description_length
        )

        extension = normalize_extension(PurePosixPath(parsed.path).suffix)
        if extension:
            self._check_banned(extension)
        return self._resolve_kind(request.kind, extension)

    def _resolve_kind(self, declared: MediaKind | str | None, extension: str) -> MediaKind:
        kind = parse_kind(declared) if declared else detect_kind(extension)
        if not self._settings.is_enabled(kind):
            raise MediaValidationError(f"media type '{kind.value}' is not enabled", field="type")
        return kind

    def _check_banned(self, extension: str) -> None:
        if extension in self._settings.banned_extensions:
            logger.info("media.store.banned_extension", extra={"extension": extension})
            raise MediaValidationError(
                f"extension '{extension}' is not allowed", field="file", extension=extension
            )

    @staticmethod
    def _check_directory(directory: str | None) -> None:
        if not directory:
            return
        parts = PurePosixPath(directory.replace("\\", "/")).parts
        if ".." in parts:
            raise MediaValidationError(
                f"directory '{directory}' must stay inside the storage root", field="directory"
            )

    @staticmethod
    def _check_length(field: str, value: str | None, limit: int) -> None:
        if value is not None and len(value) > limit:
            raise MediaValidationError(f"{field} exceeds {limit} characters", field=field)

    def _strategy(self, kind: MediaKind) -> MediaTypeStrategy:
        return self._strategies[kind]
