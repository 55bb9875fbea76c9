"""Tests for the beat request store (app/beat_requests.py)."""

from __future__ import annotations

import pytest

from app.beat_requests import (
    RequestClosedError,
    UnknownBeatsError,
    approve_request,
    create_request,
    get_request,
    list_requests,
    reject_request,
    update_request,
)
from app.catalog import create_beat
from app.db import close_db, init_db
from core.models import BeatCreate, BeatRequestCreate, BeatRequestUpdate, RequestStatus


@pytest.fixture
async def db(_env_setup):
    conn = await init_db()
    yield conn
    await close_db()


async def _beat(title, bpm, full_audio_url=None, is_active=True):
    return await create_beat(
        BeatCreate(
            title=title,
            bpm=bpm,
            preview_audio_url=f"https://cdn/{bpm}-preview.mp3",
            full_audio_url=full_audio_url,
            is_active=is_active,
        )
    )


def _checkout(*beat_ids, email="ana@example.com"):
    return BeatRequestCreate(
        first_name="Ana",
        last_name="Lopez",
        email=email,
        beat_ids=list(beat_ids),
    )


@pytest.mark.asyncio
async def test_create_snapshots_titles_in_cart_order(db):
    night = await _beat("Night Drive", 140)
    sunny = await _beat("Sunny Side", 95)

    request = await create_request(_checkout(sunny.id, night.id, sunny.id))

    assert request.status == RequestStatus.PENDING
    assert request.beat_ids == [sunny.id, night.id]
    assert request.beat_titles == ["Sunny Side", "Night Drive"]
    assert request.created_date
    assert await get_request(request.id) == request


@pytest.mark.asyncio
async def test_create_rejects_unknown_and_inactive_beats(db):
    night = await _beat("Night Drive", 140)
    hidden = await _beat("Hidden", 120, is_active=False)

    with pytest.raises(UnknownBeatsError) as excinfo:
        await create_request(_checkout(night.id, "missing", hidden.id))

    assert excinfo.value.beat_ids == ["missing", hidden.id]
    assert await list_requests() == []


@pytest.mark.asyncio
async def test_list_newest_first_and_by_status(db):
    night = await _beat("Night Drive", 140)
    first = await create_request(_checkout(night.id))
    await db.execute(
        "UPDATE beat_requests SET created_date = '2020-01-01T00:00:00.000Z' WHERE id = ?",
        (first.id,),
    )
    await db.commit()
    second = await create_request(_checkout(night.id, email="bo@example.com"))
    await reject_request(first.id)

    assert [r.id for r in await list_requests()] == [second.id, first.id]
    pending = await list_requests(status=RequestStatus.PENDING)
    assert [r.id for r in pending] == [second.id]

    with pytest.raises(ValueError, match="Cannot order by"):
        await list_requests(order_by="email")


@pytest.mark.asyncio
async def test_approve_all_returns_full_audio_links(db):
    night = await _beat("Night Drive", 140, full_audio_url="https://cdn/night.wav")
    sunny = await _beat("Sunny Side", 95)
    request = await create_request(_checkout(night.id, sunny.id))

    updated, links = await approve_request(request.id, [night.id, sunny.id])

    assert updated.status == RequestStatus.APPROVED
    assert updated.admin_notes == "Beats acceptés: Night Drive, Sunny Side"
    # Only beats with a full asset produce a link.
    assert links == [
        {"beat_id": night.id, "title": "Night Drive", "full_audio_url": "https://cdn/night.wav"}
    ]


@pytest.mark.asyncio
async def test_approve_subset_is_partial(db):
    night = await _beat("Night Drive", 140, full_audio_url="https://cdn/night.wav")
    sunny = await _beat("Sunny Side", 95, full_audio_url="https://cdn/sunny.wav")
    request = await create_request(_checkout(night.id, sunny.id))

    updated, links = await approve_request(request.id, [sunny.id])

    assert updated.status == RequestStatus.PARTIAL
    assert updated.admin_notes == "Beats acceptés: Sunny Side"
    assert [link["beat_id"] for link in links] == [sunny.id]


@pytest.mark.asyncio
async def test_approve_guards(db):
    night = await _beat("Night Drive", 140)
    request = await create_request(_checkout(night.id))

    assert await approve_request("missing", [night.id]) is None
    with pytest.raises(ValueError, match="not in this request"):
        await approve_request(request.id, ["other"])

    await approve_request(request.id, [night.id])
    with pytest.raises(RequestClosedError):
        await approve_request(request.id, [night.id])
    with pytest.raises(RequestClosedError):
        await reject_request(request.id)


@pytest.mark.asyncio
async def test_reject_and_manual_update(db):
    night = await _beat("Night Drive", 140)
    request = await create_request(_checkout(night.id))

    rejected = await reject_request(request.id)
    assert rejected.status == RequestStatus.REJECTED
    assert await reject_request("missing") is None

    updated = await update_request(
        request.id, BeatRequestUpdate(status=RequestStatus.PENDING, admin_notes="second look")
    )
    assert updated.status == RequestStatus.PENDING
    assert updated.admin_notes == "second look"
    assert await update_request("missing", BeatRequestUpdate(admin_notes="x")) is None
