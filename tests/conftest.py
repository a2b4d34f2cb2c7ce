"""Shared pytest fixtures."""

import pytest

from catalog_crawler.config import settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every output path at a temp dir and remove fixed delays."""
    monkeypatch.setattr(settings, "output_dir", str(tmp_path / "LocalStorage"))
    monkeypatch.setattr(settings, "image_root", str(tmp_path / "images"))
    monkeypatch.setattr(settings, "debug_dir", str(tmp_path / "screenshots"))
    monkeypatch.setattr(settings, "capture_screenshots", False)
    monkeypatch.setattr(settings, "login_settle_ms", 0)
    return settings
