"""Player REST API routes.

The page calls the operation endpoints when the listener clicks, polls
``/player/commands`` to drive its single ``<audio>`` element, and posts
the element's media events back to ``/player/events``.
"""

from __future__ import annotations

import secrets
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, model_validator

from app.catalog import get_track
from app.player import PlayerSession, get_or_create_session
from core.models import Track
from core.output import Ended, LoadFailed, MetadataLoaded, OutputEvent, TimeUpdate

router = APIRouter(prefix="/player", tags=["player"])


def _get_player(request: Request) -> PlayerSession:
    """Return the caller's player session, issuing a listener id if needed."""
    listener_id = request.session.get("listener_id")
    if not listener_id:
        listener_id = secrets.token_urlsafe(16)
        request.session["listener_id"] = listener_id
    return get_or_create_session(listener_id)


class PlayRequest(BaseModel):
    beat_id: Optional[str] = None
    track: Optional[Track] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "PlayRequest":
        if (self.beat_id is None) == (self.track is None):
            raise ValueError("Provide exactly one of beat_id or track")
        return self


class SeekRequest(BaseModel):
    time: float


class EventRequest(BaseModel):
    type: Literal["timeupdate", "loadedmetadata", "ended", "error"]
    load_id: int
    position: float = Field(default=0.0, allow_inf_nan=False)
    duration: float = Field(default=0.0, allow_inf_nan=False)
    message: str = ""

    def to_event(self) -> OutputEvent:
        if self.type == "timeupdate":
            return TimeUpdate(load_id=self.load_id, position=self.position)
        if self.type == "loadedmetadata":
            return MetadataLoaded(load_id=self.load_id, duration=self.duration)
        if self.type == "ended":
            return Ended(load_id=self.load_id)
        return LoadFailed(load_id=self.load_id, reason=self.message)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


@router.get("/state")
async def state(request: Request):
    """Current playback state for this listener."""
    return JSONResponse(_get_player(request).to_status_dict())


@router.post("/play")
async def play(request: Request, body: PlayRequest):
    """Play a catalog beat (by id) or an explicit track."""
    player = _get_player(request)
    track = body.track
    if body.beat_id is not None:
        track = await get_track(body.beat_id)
        if track is None:
            raise HTTPException(status_code=404, detail="Beat not found")
    player.coordinator.play(track)
    return JSONResponse(player.to_status_dict())


@router.post("/pause")
async def pause(request: Request):
    player = _get_player(request)
    player.coordinator.pause()
    return JSONResponse(player.to_status_dict())


@router.post("/toggle")
async def toggle(request: Request):
    player = _get_player(request)
    player.coordinator.toggle_play()
    return JSONResponse(player.to_status_dict())


@router.post("/seek")
async def seek(request: Request, body: SeekRequest):
    """Seek; targets outside the preview window are clamped."""
    player = _get_player(request)
    player.coordinator.seek(body.time)
    return JSONResponse(player.to_status_dict())


@router.post("/close")
async def close(request: Request):
    """Dismiss the mini-player."""
    player = _get_player(request)
    player.coordinator.close()
    return JSONResponse(player.to_status_dict())


# ---------------------------------------------------------------------------
# Output channel (browser audio element)
# ---------------------------------------------------------------------------


@router.get("/commands")
async def commands(request: Request, after: int = 0):
    """Output commands the page has not applied yet."""
    player = _get_player(request)
    return JSONResponse(
        {
            "commands": player.output.commands_after(after),
            "latest_seq": player.output.latest_seq,
            "load_id": player.coordinator.load_id,
        }
    )


@router.post("/events")
async def events(request: Request, body: EventRequest):
    """Media event reported by the page's audio element."""
    player = _get_player(request)
    player.output.report(body.to_event())
    return JSONResponse(player.to_status_dict())
