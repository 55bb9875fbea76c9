"""Pydantic models shared across the application."""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BeatGenre(str, Enum):
    HIP_HOP = "Hip-Hop"
    TRAP = "Trap"
    RNB = "R&B"
    POP = "Pop"
    DRILL = "Drill"
    AFROBEAT = "Afrobeat"
    LO_FI = "Lo-Fi"
    BOOM_BAP = "Boom Bap"
    DANCEHALL = "Dancehall"
    ELECTRONIC = "Electronic"


class BeatMood(str, Enum):
    ENERGETIC = "Energique"
    MELANCHOLIC = "Mélancolique"
    AGGRESSIVE = "Agressif"
    CHILL = "Chill"
    DARK = "Sombre"
    HAPPY = "Joyeux"
    EPIC = "Épique"
    ROMANTIC = "Romantique"
    MYSTERIOUS = "Mystérieux"


class Track(BaseModel):
    """A playable unit as seen by the player.

    Built once at the catalog boundary; the coordinator compares tracks by
    ``id`` only.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    audio_url: str
    cover_art_url: Optional[str] = None

    @field_validator("id", "audio_url")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class Beat(BaseModel):
    """Catalog record for a beat."""

    id: str
    title: str
    bpm: int = Field(gt=0)
    genre: List[BeatGenre] = Field(default_factory=list)
    mood: List[BeatMood] = Field(default_factory=list)
    cover_art_url: Optional[str] = None
    preview_audio_url: str
    full_audio_url: Optional[str] = None
    is_active: bool = True
    created_date: str = ""

    def to_track(self) -> Track:
        """Player track for this beat — always the preview asset."""
        return Track(
            id=self.id,
            title=self.title,
            audio_url=self.preview_audio_url,
            cover_art_url=self.cover_art_url,
        )


class BeatCreate(BaseModel):
    """Admin payload for a new beat."""

    title: str = Field(min_length=1)
    bpm: int = Field(gt=0)
    genre: List[BeatGenre] = Field(default_factory=list)
    mood: List[BeatMood] = Field(default_factory=list)
    cover_art_url: Optional[str] = None
    preview_audio_url: str = Field(min_length=1)
    full_audio_url: Optional[str] = None
    is_active: bool = True


class BeatUpdate(BaseModel):
    """Partial admin update — only fields that are set get written."""

    title: Optional[str] = Field(default=None, min_length=1)
    bpm: Optional[int] = Field(default=None, gt=0)
    genre: Optional[List[BeatGenre]] = None
    mood: Optional[List[BeatMood]] = None
    cover_art_url: Optional[str] = None
    preview_audio_url: Optional[str] = Field(default=None, min_length=1)
    full_audio_url: Optional[str] = None
    is_active: Optional[bool] = None


# ---------------------------------------------------------------------------
# Beat requests (checkout)
# ---------------------------------------------------------------------------

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PARTIAL = "partial"


class BeatRequest(BaseModel):
    """A listener's request for the full versions of some beats.

    ``beat_titles`` is a snapshot taken at checkout, so the request still
    reads correctly after a beat is renamed or deleted.
    """

    id: str
    first_name: str
    last_name: str
    email: str
    instagram: Optional[str] = None
    beat_ids: List[str] = Field(default_factory=list)
    beat_titles: List[str] = Field(default_factory=list)
    status: RequestStatus = RequestStatus.PENDING
    admin_notes: Optional[str] = None
    created_date: str = ""


class BeatRequestCreate(BaseModel):
    """Checkout form: contact details plus the beats in the cart."""

    first_name: str
    last_name: str
    email: str
    instagram: Optional[str] = None
    beat_ids: List[str] = Field(min_length=1)

    @field_validator("first_name", "last_name")
    @classmethod
    def _required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        value = value.strip()
        if not _EMAIL_RE.match(value):
            raise ValueError("invalid email address")
        return value


class BeatRequestUpdate(BaseModel):
    status: Optional[RequestStatus] = None
    admin_notes: Optional[str] = None


class BeatRequestApproval(BaseModel):
    """Beats the admin accepts; fewer than requested makes it partial."""

    beat_ids: List[str] = Field(min_length=1)
