"""Tests for the SQLite database layer (app/db.py)."""

from __future__ import annotations

import pytest
import aiosqlite

from app.db import init_db, close_db, get_db


@pytest.fixture(autouse=True)
def _override_db_path(_env_setup):
    """Use a temporary database for every test."""


@pytest.mark.asyncio
async def test_init_creates_tables():
    """init_db should create the beats and beat_requests tables."""
    db = await init_db()
    try:
        cursor = await db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        tables = [row[0] for row in await cursor.fetchall()]
        assert "beats" in tables
        assert "beat_requests" in tables
    finally:
        await close_db()


@pytest.mark.asyncio
async def test_get_db_before_init_raises():
    """get_db should raise RuntimeError if called before init_db."""
    # Ensure db is closed from any prior test.
    await close_db()
    with pytest.raises(RuntimeError, match="not initialised"):
        get_db()


@pytest.mark.asyncio
async def test_beat_defaults():
    """is_active defaults to 1 and created_date is filled in."""
    db = await init_db()
    try:
        await db.execute(
            "INSERT INTO beats (id, title, bpm, preview_audio_url) VALUES (?, ?, ?, ?)",
            ("b1", "Night Drive", 140, "p.mp3"),
        )
        await db.commit()

        cursor = await db.execute(
            "SELECT is_active, created_date, genre FROM beats WHERE id = ?", ("b1",)
        )
        row = await cursor.fetchone()
        assert row[0] == 1
        assert row[1]
        assert row[2] == "[]"
    finally:
        await close_db()


@pytest.mark.asyncio
async def test_bpm_check_constraint():
    """beats.bpm must be positive."""
    db = await init_db()
    try:
        with pytest.raises(aiosqlite.IntegrityError):
            await db.execute(
                "INSERT INTO beats (id, title, bpm, preview_audio_url) VALUES ('b1', 't', 0, 'p.mp3')"
            )
            await db.commit()
    finally:
        await close_db()
