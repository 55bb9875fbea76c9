"""Beat request store (SQLite).

A request is created at checkout from the listener's cart and then reviewed
by the admin: approved (all beats), partial (some beats) or rejected.
Approving hands back the full-audio links so the admin can send them on.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.catalog import get_beats_by_ids
from app.db import get_db
from core.models import BeatRequest, BeatRequestCreate, BeatRequestUpdate, RequestStatus

logger = logging.getLogger(__name__)

_ORDERABLE = {"created_date", "status"}
_COLUMNS = (
    "id, first_name, last_name, email, instagram, beat_ids, beat_titles, "
    "status, admin_notes, created_date"
)


class UnknownBeatsError(ValueError):
    """Raised when a request names beats that are missing or not on sale."""

    def __init__(self, beat_ids: Sequence[str]):
        self.beat_ids = list(beat_ids)
        super().__init__(f"Unknown beats: {', '.join(self.beat_ids)}")


class RequestClosedError(ValueError):
    """Raised when reviewing a request that is no longer pending."""


def _row_to_request(row: Sequence[Any]) -> BeatRequest:
    return BeatRequest(
        id=row[0],
        first_name=row[1],
        last_name=row[2],
        email=row[3],
        instagram=row[4],
        beat_ids=json.loads(row[5] or "[]"),
        beat_titles=json.loads(row[6] or "[]"),
        status=row[7],
        admin_notes=row[8],
        created_date=row[9],
    )


def _order_clause(order_by: Optional[str]) -> str:
    if not order_by:
        return ""
    descending = order_by.startswith("-")
    column = order_by[1:] if descending else order_by
    if column not in _ORDERABLE:
        raise ValueError(f"Cannot order by {column!r}")
    return f" ORDER BY {column} {'DESC' if descending else 'ASC'}, id ASC"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_request(request_id: str) -> Optional[BeatRequest]:
    db = get_db()
    cur = await db.execute(
        f"SELECT {_COLUMNS} FROM beat_requests WHERE id = ?", (request_id,)
    )
    row = await cur.fetchone()
    return _row_to_request(row) if row else None


async def list_requests(
    *,
    status: Optional[RequestStatus] = None,
    order_by: Optional[str] = "-created_date",
) -> List[BeatRequest]:
    """All requests, newest first by default; optionally one status only."""
    where = ""
    params: Tuple[Any, ...] = ()
    if status is not None:
        where = " WHERE status = ?"
        params = (status.value,)
    db = get_db()
    cur = await db.execute(
        f"SELECT {_COLUMNS} FROM beat_requests{where}{_order_clause(order_by)}",
        params,
    )
    return [_row_to_request(row) for row in await cur.fetchall()]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_request(payload: BeatRequestCreate) -> BeatRequest:
    """Store a checkout request, snapshotting the titles of the cart's beats.

    Duplicate ids are collapsed (cart order is kept).  Raises
    ``UnknownBeatsError`` if any id is not an active beat.
    """
    beat_ids = list(dict.fromkeys(payload.beat_ids))
    beats = {b.id: b for b in await get_beats_by_ids(beat_ids) if b.is_active}
    missing = [beat_id for beat_id in beat_ids if beat_id not in beats]
    if missing:
        raise UnknownBeatsError(missing)
    beat_titles = [beats[beat_id].title for beat_id in beat_ids]

    db = get_db()
    request_id = uuid.uuid4().hex
    await db.execute(
        """INSERT INTO beat_requests
           (id, first_name, last_name, email, instagram, beat_ids, beat_titles, status)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            request_id,
            payload.first_name,
            payload.last_name,
            payload.email,
            payload.instagram,
            json.dumps(beat_ids),
            json.dumps(beat_titles),
            RequestStatus.PENDING.value,
        ),
    )
    await db.commit()
    logger.info("New request %s for %d beat(s)", request_id, len(beat_ids))
    request = await get_request(request_id)
    if request is None:
        raise RuntimeError(f"Request {request_id} missing right after insert")
    return request


async def update_request(request_id: str, updates: BeatRequestUpdate) -> Optional[BeatRequest]:
    """Set status and/or admin notes; returns None if the request is missing."""
    changes = updates.model_dump(exclude_unset=True)
    assignments: List[str] = []
    params: List[Any] = []
    for column, value in changes.items():
        if column == "status":
            if value is None:
                continue
            value = RequestStatus(value).value
        assignments.append(f"{column} = ?")
        params.append(value)
    if not assignments:
        return await get_request(request_id)

    db = get_db()
    cur = await db.execute(
        f"UPDATE beat_requests SET {', '.join(assignments)} WHERE id = ?",
        (*params, request_id),
    )
    await db.commit()
    if cur.rowcount == 0:
        return None
    logger.info("Updated request %s: %s", request_id, ", ".join(changes))
    return await get_request(request_id)


async def approve_request(
    request_id: str, approved_ids: Sequence[str]
) -> Optional[Tuple[BeatRequest, List[Dict[str, str]]]]:
    """Accept some or all of a pending request's beats.

    Returns the updated request and the download links (title and full
    audio URL) of the accepted beats that have one, or None if the request
    does not exist.  Raises ``RequestClosedError`` if the request is no
    longer pending and ``ValueError`` if *approved_ids* names a beat that
    was not requested.
    """
    request = await get_request(request_id)
    if request is None:
        return None
    if request.status != RequestStatus.PENDING:
        raise RequestClosedError(f"Request is already {request.status.value}")

    approved = list(dict.fromkeys(approved_ids))
    extra = [beat_id for beat_id in approved if beat_id not in request.beat_ids]
    if extra:
        raise ValueError(f"Beats not in this request: {', '.join(extra)}")

    titles = dict(zip(request.beat_ids, request.beat_titles))
    status = (
        RequestStatus.PARTIAL
        if len(approved) < len(request.beat_ids)
        else RequestStatus.APPROVED
    )
    notes = "Beats acceptés: " + ", ".join(titles.get(b, b) for b in approved)
    updated = await update_request(
        request_id, BeatRequestUpdate(status=status, admin_notes=notes)
    )
    if updated is None:
        return None

    beats = {b.id: b for b in await get_beats_by_ids(approved)}
    links = [
        {
            "beat_id": beat_id,
            "title": beats[beat_id].title,
            "full_audio_url": beats[beat_id].full_audio_url,
        }
        for beat_id in approved
        if beat_id in beats and beats[beat_id].full_audio_url
    ]
    logger.info(
        "Request %s %s (%d/%d beats)",
        request_id,
        status.value,
        len(approved),
        len(request.beat_ids),
    )
    return updated, links


async def reject_request(request_id: str) -> Optional[BeatRequest]:
    request = await get_request(request_id)
    if request is None:
        return None
    if request.status != RequestStatus.PENDING:
        raise RequestClosedError(f"Request is already {request.status.value}")
    return await update_request(request_id, BeatRequestUpdate(status=RequestStatus.REJECTED))
