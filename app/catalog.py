"""Beat catalog store (SQLite).

This is where catalog rows become validated ``Beat`` models and, for the
player, ``Track`` values.  Genre and mood are stored as JSON arrays and
filtered with ``json_each``.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, List, Optional, Sequence, Tuple

from app.config import get_settings
from app.db import get_db
from core.models import Beat, BeatCreate, BeatUpdate, Track

logger = logging.getLogger(__name__)

# Filter value meaning "no filter" (label used by the storefront filter bar).
ALL_FILTER = "Tous"

_ORDERABLE = {"created_date", "title", "bpm"}
_NOT_NULL = {"title", "bpm", "preview_audio_url", "is_active"}
_COLUMNS = (
    "id, title, bpm, genre, mood, cover_art_url, preview_audio_url, "
    "full_audio_url, is_active, created_date"
)


def _row_to_beat(row: Sequence[Any]) -> Beat:
    return Beat(
        id=row[0],
        title=row[1],
        bpm=row[2],
        genre=json.loads(row[3] or "[]"),
        mood=json.loads(row[4] or "[]"),
        cover_art_url=row[5],
        preview_audio_url=row[6],
        full_audio_url=row[7],
        is_active=bool(row[8]),
        created_date=row[9],
    )


def _order_clause(order_by: Optional[str]) -> str:
    """Translate ``"-created_date"`` style ordering into SQL.

    Raises ``ValueError`` for columns outside the whitelist.
    """
    if not order_by:
        return ""
    descending = order_by.startswith("-")
    column = order_by[1:] if descending else order_by
    if column not in _ORDERABLE:
        raise ValueError(f"Cannot order by {column!r}")
    return f" ORDER BY {column} {'DESC' if descending else 'ASC'}, id ASC"


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_beat(beat_id: str) -> Optional[Beat]:
    db = get_db()
    cur = await db.execute(f"SELECT {_COLUMNS} FROM beats WHERE id = ?", (beat_id,))
    row = await cur.fetchone()
    return _row_to_beat(row) if row else None


async def get_beats_by_ids(beat_ids: Sequence[str]) -> List[Beat]:
    """Fetch several beats at once (order not guaranteed)."""
    if not beat_ids:
        return []
    db = get_db()
    placeholders = ", ".join("?" for _ in beat_ids)
    cur = await db.execute(
        f"SELECT {_COLUMNS} FROM beats WHERE id IN ({placeholders})",
        tuple(beat_ids),
    )
    return [_row_to_beat(row) for row in await cur.fetchall()]


async def get_track(beat_id: str) -> Optional[Track]:
    """Resolve an active beat into the player's ``Track`` (preview asset)."""
    beat = await get_beat(beat_id)
    if beat is None or not beat.is_active:
        return None
    return beat.to_track()


async def search_beats(
    *,
    genre: Optional[str] = None,
    mood: Optional[str] = None,
    search: Optional[str] = None,
    bpm_min: Optional[int] = None,
    bpm_max: Optional[int] = None,
    page: int = 0,
    limit: Optional[int] = None,
    order_by: Optional[str] = "-created_date",
    include_inactive: bool = False,
) -> Tuple[List[Beat], int]:
    """Filtered, paginated catalog query.

    Parameters
    ----------
    genre, mood:
        Keep beats whose array contains this label.  ``None``, ``""`` and
        ``"Tous"`` disable the filter.
    search:
        Case-insensitive substring match on the title.
    bpm_min, bpm_max:
        Inclusive bounds; values ``<= 0`` are ignored.
    page, limit:
        Zero-based page index and page size (capped by settings).

    Returns
    -------
    (beats on this page, total matching count)
    """
    settings = get_settings()
    if limit is None or limit <= 0:
        limit = settings.catalog_page_size
    limit = min(limit, settings.catalog_max_page_size)
    page = max(page, 0)

    clauses: List[str] = []
    params: List[Any] = []

    if not include_inactive:
        clauses.append("is_active = 1")
    if genre and genre != ALL_FILTER:
        clauses.append("EXISTS (SELECT 1 FROM json_each(beats.genre) WHERE value = ?)")
        params.append(genre)
    if mood and mood != ALL_FILTER:
        clauses.append("EXISTS (SELECT 1 FROM json_each(beats.mood) WHERE value = ?)")
        params.append(mood)
    if search:
        clauses.append("title LIKE ? ESCAPE '\\'")
        params.append(f"%{_escape_like(search)}%")
    if bpm_min is not None and bpm_min > 0:
        clauses.append("bpm >= ?")
        params.append(bpm_min)
    if bpm_max is not None and bpm_max > 0:
        clauses.append("bpm <= ?")
        params.append(bpm_max)

    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    order = _order_clause(order_by)

    db = get_db()
    cur = await db.execute(f"SELECT COUNT(*) FROM beats{where}", tuple(params))
    count = (await cur.fetchone())[0]

    cur = await db.execute(
        f"SELECT {_COLUMNS} FROM beats{where}{order} LIMIT ? OFFSET ?",
        (*params, limit, page * limit),
    )
    beats = [_row_to_beat(row) for row in await cur.fetchall()]
    return beats, count


# ---------------------------------------------------------------------------
# Admin writes
# ---------------------------------------------------------------------------

async def create_beat(payload: BeatCreate) -> Beat:
    db = get_db()
    beat_id = uuid.uuid4().hex
    await db.execute(
        """INSERT INTO beats
           (id, title, bpm, genre, mood, cover_art_url, preview_audio_url,
            full_audio_url, is_active)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            beat_id,
            payload.title,
            payload.bpm,
            json.dumps([g.value for g in payload.genre]),
            json.dumps([m.value for m in payload.mood]),
            payload.cover_art_url,
            payload.preview_audio_url,
            payload.full_audio_url,
            int(payload.is_active),
        ),
    )
    await db.commit()
    logger.info("Created beat %s (%s)", beat_id, payload.title)
    beat = await get_beat(beat_id)
    if beat is None:
        raise RuntimeError(f"Beat {beat_id} missing right after insert")
    return beat


async def update_beat(beat_id: str, updates: BeatUpdate) -> Optional[Beat]:
    """Apply the fields set on *updates*; returns None if the beat is missing."""
    changes = updates.model_dump(exclude_unset=True)
    if not changes:
        return await get_beat(beat_id)

    assignments: List[str] = []
    params: List[Any] = []
    for column, value in changes.items():
        if value is None and column in _NOT_NULL:
            continue
        if column in ("genre", "mood"):
            value = json.dumps([item.value for item in (value or [])])
        elif column == "is_active":
            value = int(bool(value))
        assignments.append(f"{column} = ?")
        params.append(value)
    if not assignments:
        return await get_beat(beat_id)

    db = get_db()
    cur = await db.execute(
        f"UPDATE beats SET {', '.join(assignments)} WHERE id = ?",
        (*params, beat_id),
    )
    await db.commit()
    if cur.rowcount == 0:
        return None
    logger.info("Updated beat %s: %s", beat_id, ", ".join(changes))
    return await get_beat(beat_id)


async def delete_beat(beat_id: str) -> bool:
    db = get_db()
    cur = await db.execute("DELETE FROM beats WHERE id = ?", (beat_id,))
    await db.commit()
    deleted = cur.rowcount > 0
    if deleted:
        logger.info("Deleted beat %s", beat_id)
    return deleted
