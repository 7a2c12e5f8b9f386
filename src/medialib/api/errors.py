"""Mapping of media errors onto HTTP responses."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ..exceptions import (
    MediaError,
    MediaValidationError,
    NameConflictError,
    NotFoundError,
    RepositoryError,
    StorageError,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApiError:
    """Structured error payload for HTTP handlers."""

    status_code: int
    failure_reason: str
    detail: str

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content={
                "status": "error",
                "failure_reason": self.failure_reason,
                "detail": self.detail,
            },
        )


def api_error_for(exc: MediaError) -> ApiError:
    """Translate a domain error; more specific classes are checked first."""
    if isinstance(exc, NameConflictError):
        return ApiError(status.HTTP_409_CONFLICT, "name_conflict", str(exc))
    if isinstance(exc, MediaValidationError):
        return ApiError(status.HTTP_400_BAD_REQUEST, "invalid_request", str(exc))
    if isinstance(exc, NotFoundError):
        return ApiError(status.HTTP_404_NOT_FOUND, "not_found", str(exc))
    if isinstance(exc, StorageError):
        return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "storage_error", str(exc))
    if isinstance(exc, RepositoryError):
        return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "database_error", str(exc))
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "media_error", str(exc))


async def media_error_handler(request: Request, exc: MediaError) -> JSONResponse:
    error = api_error_for(exc)
    if error.status_code >= 500:
        logger.error(
            "media.api.error",
            extra={"path": request.url.path, "failure_reason": error.failure_reason, "error": str(exc)},
        )
    return error.to_response()


__all__ = ["ApiError", "api_error_for", "media_error_handler"]
