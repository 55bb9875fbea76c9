"""Shared fixtures: fake output, sample tracks, temp settings."""

from __future__ import annotations

import pytest

from core.models import Track
from fakes import FakeOutput


@pytest.fixture
def output():
    return FakeOutput()


@pytest.fixture
def beat_one():
    return Track(id="t1", title="Beat One", audio_url="a.mp3")


@pytest.fixture
def beat_two():
    return Track(id="t2", title="Beat Two", audio_url="b.mp3", cover_art_url="b.jpg")


@pytest.fixture
def _env_setup(monkeypatch, tmp_path):
    """Use temp DB and clear settings cache."""
    monkeypatch.setenv("DB_PATH", str(tmp_path / "test.db"))
    monkeypatch.setenv("SECRET_KEY", "test_secret")
    monkeypatch.setenv("ADMIN_TOKEN", "admin-secret")
    from app.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
