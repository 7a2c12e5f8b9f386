"""Cron entry point for sweeping orphaned media files."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field

from src.medialib.config import load_config
from src.medialib.exceptions import MediaError
from src.medialib.logging import configure_logging
from src.medialib.media.media_deletion_service import MediaDeletionService
from src.medialib.media.media_models import SweepResult
from src.medialib.media.media_types import parse_kind
from src.medialib.repositories.media_asset_repository import MediaAssetRepository


@dataclass(slots=True)
class CleanupSummary:
    results: list[SweepResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def removed(self) -> int:
        return sum(len(result.removed) for result in self.results)

    @property
    def errors(self) -> int:
        return sum(len(result.errors) for result in self.results)


def perform_cleanup(*, dry_run: bool, kinds: list[str] | None = None) -> CleanupSummary:
    """Sweep orphans for ``kinds`` (all enabled kinds by default)."""
    config = load_config()
    service = MediaDeletionService(
        records=MediaAssetRepository(config.session_factory),
        disks=config.disks,
        settings=config.settings,
    )
    selected = [parse_kind(kind) for kind in kinds] if kinds else list(config.settings.enabled_kinds)

    summary = CleanupSummary(dry_run=dry_run)
    for kind in selected:
        summary.results.append(service.sweep_orphans(kind, dry_run=dry_run))
    return summary


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove media files that no record points at.")
    parser.add_argument(
        "--kind",
        action="append",
        dest="kinds",
        help="Media type to sweep (image, video, audio, document); repeatable.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Only report orphans without deleting files.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    configure_logging()
    try:
        summary = perform_cleanup(dry_run=args.dry_run, kinds=args.kinds)
    except MediaError as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    label = "orphans" if summary.dry_run else "removed"
    for result in summary.results:
        print(
            f"cleanup {'dry-run' if summary.dry_run else 'done'}, kind={result.kind.value}, "
            f"{label}={len(result.removed)}, errors={len(result.errors)}",
            file=sys.stdout,
        )
        for error in result.errors:
            print(f"  failed {error.path}: {error.error}", file=sys.stderr)
    return 2 if summary.errors else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
