"""Filename sanitizing and collision-free name allocation.

Non-explicit names are slugged and probed in order::

    <directory>/<base>.<ext>
    <directory>/<base>_1.<ext>
    <directory>/<base>_2.<ext>
    ...

Allocation is not atomic with the subsequent write: two concurrent callers
allocating the same base name in the same directory can observe the same
free slot, and the later write replaces the earlier one. Callers that need
strict uniqueness under concurrency must serialize allocation per
``(disk, directory, base name)``.
"""

from __future__ import annotations

import logging
import re
import unicodedata
import uuid
from dataclasses import dataclass

from ..exceptions import MediaValidationError, NameConflictError
from ..storage.disk import DiskStorage
from .file_location import DEFAULT_STORAGE_TEMPLATE, FileLocation

logger = logging.getLogger(__name__)

SLUG_SEPARATOR = "-"
SUFFIX_SEPARATOR = "_"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def generate_token(prefix: str = "file_") -> str:
    """Return a short unique token used when a name sanitizes to nothing."""
    return f"{prefix}{uuid.uuid4().hex[:13]}"


def sanitize_basename(name: str | None) -> str:
    """Slug ``name``: ASCII-fold, lower-case and collapse non-alphanumeric runs.

    Returns a generated token when nothing survives sanitizing.
    """
    folded = unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM.sub(SLUG_SEPARATOR, folded.lower()).strip(SLUG_SEPARATOR)
    return slug or generate_token()


def validate_explicit_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise MediaValidationError("file name must not be empty", field="file_name")
    if "/" in cleaned or "\\" in cleaned or cleaned in {".", ".."}:
        raise MediaValidationError(
            f"file name '{name}' must not contain path separators", field="file_name"
        )
    return cleaned


@dataclass(slots=True)
class FilenameAllocator:
    """Pick a free base name for a file about to be written."""

    disks: DiskStorage
    storage_template: str = DEFAULT_STORAGE_TEMPLATE

    def allocate(
        self,
        disk: str,
        directory: str,
        desired_basename: str | None,
        extension: str,
        *,
        explicit: bool = False,
    ) -> str:
        """Return a base name that is free at ``directory`` on ``disk``.

        Raises:
            NameConflictError: ``explicit`` is set and the exact name is taken.
        """
        if explicit:
            basename = validate_explicit_name(desired_basename or "")
            location = FileLocation(basename, extension, disk, directory)
            if self._is_taken(location):
                logger.info(
                    "media.naming.conflict",
                    extra={"disk": disk, "path": location.relative_path()},
                )
                raise NameConflictError(location.relative_path())
            return basename

        base = sanitize_basename(desired_basename)
        candidate = base
        suffix = 0
        while self._is_taken(FileLocation(candidate, extension, disk, directory)):
            suffix += 1
            candidate = f"{base}{SUFFIX_SEPARATOR}{suffix}"
        return candidate

    def allocate_location(
        self,
        disk: str,
        directory: str,
        desired_basename: str | None,
        extension: str,
        *,
        explicit: bool = False,
    ) -> FileLocation:
        basename = self.allocate(disk, directory, desired_basename, extension, explicit=explicit)
        return FileLocation(basename, extension, disk, directory)

    def _is_taken(self, location: FileLocation) -> bool:
        return self.disks.exists(
            location.disk, location.absolute_storage_path(self.storage_template)
        )
