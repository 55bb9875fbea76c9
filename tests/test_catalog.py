"""Tests for the beat catalog store (app/catalog.py)."""

from __future__ import annotations

import pytest

from app.catalog import (
    create_beat,
    delete_beat,
    get_beat,
    get_beats_by_ids,
    get_track,
    search_beats,
    update_beat,
)
from app.db import close_db, init_db
from core.models import BeatCreate, BeatGenre, BeatUpdate


@pytest.fixture
async def db(_env_setup):
    conn = await init_db()
    yield conn
    await close_db()


async def _seed():
    """Insert a small catalog; returns beats keyed by title."""
    rows = [
        dict(title="Night Drive", bpm=140, genre=["Trap"], mood=["Sombre"]),
        dict(title="Sunny Side", bpm=95, genre=["Pop", "R&B"], mood=["Joyeux", "Chill"]),
        dict(title="Drill Sergeant", bpm=142, genre=["Drill", "Trap"], mood=["Agressif"]),
        dict(title="Late Night Lo-Fi", bpm=80, genre=["Lo-Fi"], mood=["Chill"]),
        dict(title="Hidden Gem", bpm=120, genre=["Trap"], mood=["Chill"], is_active=False),
    ]
    beats = {}
    for row in rows:
        beat = await create_beat(
            BeatCreate(preview_audio_url=f"https://cdn/{row['bpm']}.mp3", **row)
        )
        beats[beat.title] = beat
    return beats


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_and_get(db):
    beat = await create_beat(
        BeatCreate(
            title="Night Drive",
            bpm=140,
            genre=["Trap"],
            preview_audio_url="p.mp3",
            full_audio_url="f.wav",
        )
    )
    fetched = await get_beat(beat.id)
    assert fetched == beat
    assert fetched.genre == [BeatGenre.TRAP]
    assert fetched.created_date


@pytest.mark.asyncio
async def test_create_raises_when_row_cannot_be_read_back(db, monkeypatch):
    async def _missing(beat_id):
        return None

    monkeypatch.setattr("app.catalog.get_beat", _missing)
    with pytest.raises(RuntimeError, match="missing right after insert"):
        await create_beat(BeatCreate(title="Ghost", bpm=100, preview_audio_url="p.mp3"))


@pytest.mark.asyncio
async def test_get_missing_returns_none(db):
    assert await get_beat("nope") is None
    assert await get_track("nope") is None


@pytest.mark.asyncio
async def test_get_track_uses_preview_and_skips_inactive(db):
    beats = await _seed()
    track = await get_track(beats["Night Drive"].id)
    assert track.audio_url == "https://cdn/140.mp3"
    assert track.title == "Night Drive"
    assert await get_track(beats["Hidden Gem"].id) is None


@pytest.mark.asyncio
async def test_get_beats_by_ids(db):
    beats = await _seed()
    wanted = [beats["Night Drive"].id, beats["Sunny Side"].id]
    found = await get_beats_by_ids(wanted)
    assert {b.id for b in found} == set(wanted)
    assert await get_beats_by_ids([]) == []


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_search_excludes_inactive(db):
    await _seed()
    beats, count = await search_beats()
    assert count == 4
    assert "Hidden Gem" not in {b.title for b in beats}


@pytest.mark.asyncio
async def test_search_genre_is_array_contains(db):
    await _seed()
    beats, count = await search_beats(genre="Trap", order_by="title")
    assert count == 2
    assert [b.title for b in beats] == ["Drill Sergeant", "Night Drive"]


@pytest.mark.asyncio
async def test_search_all_label_disables_filter(db):
    await _seed()
    _, count = await search_beats(genre="Tous", mood="Tous")
    assert count == 4


@pytest.mark.asyncio
async def test_search_mood_title_and_bpm(db):
    await _seed()
    beats, _ = await search_beats(mood="Chill", order_by="bpm")
    assert [b.title for b in beats] == ["Late Night Lo-Fi", "Sunny Side"]

    beats, _ = await search_beats(search="night", order_by="title")
    assert [b.title for b in beats] == ["Late Night Lo-Fi", "Night Drive"]

    beats, _ = await search_beats(bpm_min=90, bpm_max=141, order_by="-bpm")
    assert [b.title for b in beats] == ["Night Drive", "Sunny Side"]


@pytest.mark.asyncio
async def test_search_like_wildcards_are_literal(db):
    await _seed()
    _, count = await search_beats(search="%")
    assert count == 0


@pytest.mark.asyncio
async def test_search_pagination(db):
    await _seed()
    first, count = await search_beats(page=0, limit=3, order_by="bpm")
    second, _ = await search_beats(page=1, limit=3, order_by="bpm")
    assert count == 4
    assert [b.bpm for b in first] == [80, 95, 140]
    assert [b.bpm for b in second] == [142]


@pytest.mark.asyncio
async def test_search_rejects_unknown_order_column(db):
    with pytest.raises(ValueError, match="Cannot order by"):
        await search_beats(order_by="-preview_audio_url; DROP TABLE beats")


# ---------------------------------------------------------------------------
# Admin writes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_only_touches_set_fields(db):
    beats = await _seed()
    original = beats["Sunny Side"]

    updated = await update_beat(original.id, BeatUpdate(bpm=100, genre=["Afrobeat"]))

    assert updated.bpm == 100
    assert updated.genre == [BeatGenre.AFROBEAT]
    assert updated.title == original.title
    assert updated.mood == original.mood


@pytest.mark.asyncio
async def test_update_can_deactivate(db):
    beats = await _seed()
    beat_id = beats["Night Drive"].id
    await update_beat(beat_id, BeatUpdate(is_active=False))
    assert await get_track(beat_id) is None


@pytest.mark.asyncio
async def test_update_missing_returns_none(db):
    assert await update_beat("nope", BeatUpdate(title="x")) is None


@pytest.mark.asyncio
async def test_delete(db):
    beats = await _seed()
    beat_id = beats["Night Drive"].id
    assert await delete_beat(beat_id) is True
    assert await get_beat(beat_id) is None
    assert await delete_beat(beat_id) is False
