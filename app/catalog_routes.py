"""Catalog routes: public browsing and admin metadata management."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Header, HTTPException
from fastapi.responses import JSONResponse, Response

from app.admin import require_admin
from app.catalog import create_beat, delete_beat, get_beat, search_beats, update_beat
from core.models import BeatCreate, BeatUpdate

router = APIRouter(tags=["catalog"])


# ---------------------------------------------------------------------------
# Public catalog
# ---------------------------------------------------------------------------


@router.get("/beats")
async def list_beats(
    genre: Optional[str] = None,
    mood: Optional[str] = None,
    search: Optional[str] = None,
    bpm_min: Optional[int] = None,
    bpm_max: Optional[int] = None,
    page: int = 0,
    limit: Optional[int] = None,
    order_by: str = "-created_date",
):
    """Active beats matching the filters, one page at a time."""
    try:
        beats, count = await search_beats(
            genre=genre,
            mood=mood,
            search=search,
            bpm_min=bpm_min,
            bpm_max=bpm_max,
            page=page,
            limit=limit,
            order_by=order_by,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return JSONResponse(
        {"data": [b.model_dump(mode="json") for b in beats], "count": count}
    )


@router.get("/beats/{beat_id}")
async def beat_detail(beat_id: str):
    beat = await get_beat(beat_id)
    if beat is None or not beat.is_active:
        raise HTTPException(status_code=404, detail="Beat not found")
    return JSONResponse(beat.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.post("/admin/beats", status_code=201)
async def admin_create_beat(
    body: BeatCreate,
    x_admin_token: Optional[str] = Header(default=None),
):
    require_admin(x_admin_token)
    beat = await create_beat(body)
    return JSONResponse(beat.model_dump(mode="json"), status_code=201)


@router.patch("/admin/beats/{beat_id}")
async def admin_update_beat(
    beat_id: str,
    body: BeatUpdate,
    x_admin_token: Optional[str] = Header(default=None),
):
    """Edit beat metadata (title, bpm, tags, assets, active flag)."""
    require_admin(x_admin_token)
    beat = await update_beat(beat_id, body)
    if beat is None:
        raise HTTPException(status_code=404, detail="Beat not found")
    return JSONResponse(beat.model_dump(mode="json"))


@router.delete("/admin/beats/{beat_id}", status_code=204)
async def admin_delete_beat(
    beat_id: str,
    x_admin_token: Optional[str] = Header(default=None),
):
    require_admin(x_admin_token)
    if not await delete_beat(beat_id):
        raise HTTPException(status_code=404, detail="Beat not found")
    return Response(status_code=204)
