import importlib.util
import sys
from pathlib import Path

import pytest

from src.medialib.config import load_config
from src.medialib.media.media_models import LocalMediaRequest
from src.medialib.repositories.media_asset_repository import MediaAssetRepository
from src.medialib.settings import MediaSettings
from tests.helpers.media import build_services, make_image_bytes


PROJECT_ROOT = Path(__file__).resolve().parents[3]
MODULE_PATH = PROJECT_ROOT / "scripts" / "cleanup_media.py"
SPEC = importlib.util.spec_from_file_location("cleanup_media_module", MODULE_PATH)
cleanup_media = importlib.util.module_from_spec(SPEC)
assert SPEC and SPEC.loader
sys.modules["cleanup_media_module"] = cleanup_media
SPEC.loader.exec_module(cleanup_media)


@pytest.fixture()
def config(tmp_path, monkeypatch):
    settings = MediaSettings(
        database_url=f"sqlite:///{(tmp_path / 'media.db').as_posix()}",
        disk_roots={"public": tmp_path / "storage"},
    )
    app_config = load_config(settings)
    monkeypatch.setattr(cleanup_media, "load_config", lambda: app_config)
    return app_config


@pytest.fixture()
def orphan(config):
    services = build_services(config.settings, MediaAssetRepository(config.session_factory), config.disks)
    services.store.store(
        LocalMediaRequest(payload=make_image_bytes(), original_filename="kept.jpg", generate_thumbnail=True)
    )
    config.disks.write("public", "media/image/orphan.png", b"stale")
    config.disks.write("public", "media/image/thumbnails/orphan_png_thumb.jpg", b"stale")
    return "media/image/orphan.png"


def test_perform_cleanup_dry_run(config, orphan):
    summary = cleanup_media.perform_cleanup(dry_run=True, kinds=["image"])

    assert summary.dry_run is True
    assert summary.removed == 1
    assert summary.errors == 0
    assert config.disks.exists("public", orphan)


def test_perform_cleanup_removes_orphans(config, orphan):
    summary = cleanup_media.perform_cleanup(dry_run=False)

    assert [result.kind.value for result in summary.results] == ["image", "video", "audio", "document"]
    assert summary.removed == 1
    assert not config.disks.exists("public", orphan)
    assert not config.disks.exists("public", "media/image/thumbnails/orphan_png_thumb.jpg")
    assert config.disks.exists("public", "media/image/kept.jpg")
    assert config.disks.exists("public", "media/image/thumbnails/kept_jpg_thumb.jpg")


def test_main_reports_summary(config, orphan, capsys):
    exit_code = cleanup_media.main(["--kind", "image", "--dry-run"])

    assert exit_code == 0
    assert "cleanup dry-run, kind=image, orphans=1, errors=0" in capsys.readouterr().out


def test_main_rejects_unknown_kind(config, capsys):
    exit_code = cleanup_media.main(["--kind", "hologram"])

    assert exit_code == 2
    assert "cleanup failed" in capsys.readouterr().err


def test_parse_args_collects_kinds():
    args = cleanup_media.parse_args(["--kind", "image", "--kind", "audio"])

    assert args.kinds == ["image", "audio"]
    assert args.dry_run is False
