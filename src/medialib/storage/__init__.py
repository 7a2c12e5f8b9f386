"""Disk storage backends."""

from .disk import DiskStorage, LocalDiskStorage

__all__ = ["DiskStorage", "LocalDiskStorage"]
