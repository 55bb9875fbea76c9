"""Player sessions — one coordinator per listener.

Each browser session gets exactly one ``PlaybackCoordinator`` wired to one
``RemoteOutput`` (the page's audio element).  The session is created on
first use and lives until it has been idle for ``player_session_ttl``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from app.config import get_settings
from app.remote_output import RemoteOutput
from core.playback import PlaybackCoordinator

logger = logging.getLogger(__name__)


class PlayerSession:
    """In-memory runtime state for one listener."""

    __slots__ = (
        "listener_id",
        "output",
        "coordinator",
        "created_at",
        "last_seen",
    )

    def __init__(self, *, listener_id: str, preview_limit: float, backlog: int):
        self.listener_id = listener_id
        self.output = RemoteOutput(backlog=backlog)
        self.coordinator = PlaybackCoordinator(self.output, preview_limit=preview_limit)
        self.created_at = time.monotonic()
        self.last_seen = self.created_at

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def to_status_dict(self) -> dict[str, Any]:
        """Coordinator state plus the command cursor the page should poll from."""
        status = self.coordinator.state.to_status_dict()
        status["load_id"] = self.coordinator.load_id
        status["latest_seq"] = self.output.latest_seq
        status["preview_limit"] = self.coordinator.preview_limit
        return status


# Key: listener_id → PlayerSession
_sessions: dict[str, PlayerSession] = {}


def get_session(listener_id: str) -> PlayerSession | None:
    return _sessions.get(listener_id)


def get_or_create_session(listener_id: str) -> PlayerSession:
    """Return the listener's session, creating it (and evicting idle ones)."""
    evict_idle_sessions()
    session = _sessions.get(listener_id)
    if session is None:
        settings = get_settings()
        session = PlayerSession(
            listener_id=listener_id,
            preview_limit=settings.preview_limit_seconds,
            backlog=settings.command_backlog,
        )
        _sessions[listener_id] = session
        logger.info("Created player session %s", listener_id)
    session.touch()
    return session


def evict_idle_sessions(now: float | None = None) -> int:
    """Drop sessions idle longer than the TTL; returns how many were dropped."""
    ttl = get_settings().player_session_ttl
    now = time.monotonic() if now is None else now
    stale = [lid for lid, s in _sessions.items() if now - s.last_seen > ttl]
    for lid in stale:
        session = _sessions.pop(lid)
        session.coordinator.close()
        logger.info("Evicted idle player session %s", lid)
    return len(stale)


def clear_sessions() -> None:
    """Close every session (app shutdown)."""
    for session in _sessions.values():
        session.coordinator.close()
    _sessions.clear()
