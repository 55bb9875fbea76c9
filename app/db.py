"""Async SQLite database layer.

Uses aiosqlite for non-blocking access.  Tables are created on first
startup via ``init_db()``.
"""

from __future__ import annotations

import aiosqlite

from app.config import get_settings

# Module-level connection (set during lifespan startup).
_db: aiosqlite.Connection | None = None

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS beats (
    id                TEXT    PRIMARY KEY,
    title             TEXT    NOT NULL,
    bpm               INTEGER NOT NULL CHECK(bpm > 0),
    genre             TEXT    NOT NULL DEFAULT '[]',   -- JSON array of genre labels
    mood              TEXT    NOT NULL DEFAULT '[]',   -- JSON array of mood labels
    cover_art_url     TEXT,
    preview_audio_url TEXT    NOT NULL,
    full_audio_url    TEXT,
    is_active         INTEGER NOT NULL DEFAULT 1 CHECK(is_active IN (0, 1)),
    created_date      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_beats_active_created
    ON beats(is_active, created_date);

CREATE TABLE IF NOT EXISTS beat_requests (
    id                TEXT    PRIMARY KEY,
    first_name        TEXT    NOT NULL,
    last_name         TEXT    NOT NULL,
    email             TEXT    NOT NULL,
    instagram         TEXT,
    beat_ids          TEXT    NOT NULL DEFAULT '[]',   -- JSON array of beat ids
    beat_titles       TEXT    NOT NULL DEFAULT '[]',   -- titles at checkout time
    status            TEXT    NOT NULL DEFAULT 'pending'
                              CHECK(status IN ('pending', 'approved', 'rejected', 'partial')),
    admin_notes       TEXT,
    created_date      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_beat_requests_status_created
    ON beat_requests(status, created_date);
"""


# ---------------------------------------------------------------------------
# Lifecycle helpers
# ---------------------------------------------------------------------------

async def init_db() -> aiosqlite.Connection:
    """Open (or create) the SQLite database and ensure schema exists."""
    global _db  # noqa: PLW0603
    settings = get_settings()
    db_path = settings.db_abs_path

    _db = await aiosqlite.connect(str(db_path))
    _db.row_factory = aiosqlite.Row  # type: ignore[assignment]
    await _db.executescript(_SCHEMA_SQL)
    await _db.commit()
    return _db


async def close_db() -> None:
    """Close the database connection."""
    global _db  # noqa: PLW0603
    if _db is not None:
        await _db.close()
        _db = None


def get_db() -> aiosqlite.Connection:
    """Return the current database connection (call after init)."""
    if _db is None:
        raise RuntimeError("Database not initialised — call init_db() first.")
    return _db
