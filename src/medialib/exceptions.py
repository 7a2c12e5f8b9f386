"""Domain level exceptions and helpers for the media pipeline."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import exc as sa_exc

__all__ = [
    "MediaError",
    "MediaValidationError",
    "NameConflictError",
    "NotFoundError",
    "StorageError",
    "ThumbnailDerivationError",
    "RepositoryError",
    "IntegrityConstraintViolation",
    "DatabaseOperationError",
    "ensure_found",
    "handle_sqlalchemy_errors",
]


class MediaError(Exception):
    """Base class for media library errors."""


class MediaValidationError(MediaError):
    """Raised when a request violates the store contract.

    Always raised before any disk or record-store side effect.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        extension: str | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.extension = extension


class NameConflictError(MediaValidationError):
    """Raised when an explicitly requested filename is already occupied."""

    def __init__(self, path: str) -> None:
        super().__init__(f"file '{path}' already exists", field="file_name")
        self.path = path


class NotFoundError(MediaError):
    """Raised when a record or its backing file could not be located."""

    def __init__(
        self,
        message: str,
        *,
        media_id: int | None = None,
        path: str | None = None,
    ) -> None:
        super().__init__(message)
        self.media_id = media_id
        self.path = path


class StorageError(MediaError):
    """Raised when a disk operation fails for reasons other than absence."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        media_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.media_id = media_id


class ThumbnailDerivationError(MediaError):
    """Raised inside thumbnail derivation; recovered by the caller."""


class RepositoryError(MediaError):
    """Base class for persistence layer failures."""


class IntegrityConstraintViolation(RepositoryError):
    """Raised when a database constraint is violated."""


class DatabaseOperationError(RepositoryError):
    """Raised for unexpected database errors."""


@dataclass(slots=True)
class _EntityContext:
    """Internal helper describing the entity for error messages."""

    entity: str | None = None

    def format(self, message: str) -> str:
        if self.entity:
            return f"{self.entity}: {message}"
        return message


def ensure_found(record: object | None, *, entity: str, identifier: object) -> object:
    """Ensure a record exists, otherwise raise :class:`NotFoundError`."""

    if record is None:
        media_id = identifier if isinstance(identifier, int) else None
        raise NotFoundError(f"{entity} '{identifier}' not found", media_id=media_id)
    return record


def _translate_sqlalchemy_error(exc: Exception, *, context: _EntityContext) -> RepositoryError:
    if isinstance(exc, sa_exc.IntegrityError):
        return IntegrityConstraintViolation(context.format("integrity constraint violated"))
    if isinstance(exc, sa_exc.DBAPIError):
        return DatabaseOperationError(context.format("database operation failed"))
    return RepositoryError(context.format(str(exc)))


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into domain specific ones."""

    context = _EntityContext(entity)
    try:
        yield
    except (sa_exc.IntegrityError, sa_exc.DBAPIError) as exc:
        raise _translate_sqlalchemy_error(exc, context=context) from exc
