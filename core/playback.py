"""Playback coordinator — one shared output, one current track.

Every surface that can start audio (catalog cards, the beat detail page, the
mini-player) talks to the same ``PlaybackCoordinator`` instead of owning its
own output.  The coordinator:

- keeps at most one track current and audible,
- resumes in place when asked to play the track that is already loaded,
- enforces the preview window (hard stop + rewind at the limit),
- drops output events that belong to a superseded load.

All mutations run as jobs on a single queue.  Operations and output events
submitted while a job is running (from an observer, or from an output that
reports synchronously) are applied after it, in submission order.
"""

from __future__ import annotations

import logging
import math
import threading
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, List, Optional

from pydantic import BaseModel, ConfigDict

from core.models import Track
from core.output import (
    AudioOutput,
    Ended,
    LoadFailed,
    MetadataLoaded,
    OutputEvent,
    TimeUpdate,
)
from core.preview import DEFAULT_PREVIEW_LIMIT, PreviewWindow

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

class PlaybackStatus(str, Enum):
    IDLE = "idle"
    PAUSED = "paused"
    PLAYING = "playing"


class PlaybackState(BaseModel):
    """Immutable snapshot handed to observers and the HTTP layer."""

    model_config = ConfigDict(frozen=True)

    current_track: Optional[Track] = None
    is_playing: bool = False
    position: float = 0.0
    duration: float = 0.0
    error_message: Optional[str] = None

    @property
    def status(self) -> PlaybackStatus:
        if self.current_track is None:
            return PlaybackStatus.IDLE
        return PlaybackStatus.PLAYING if self.is_playing else PlaybackStatus.PAUSED

    def to_status_dict(self) -> dict[str, Any]:
        """Serialize for the status API."""
        return {
            "status": self.status.value,
            "current_track": self.current_track.model_dump() if self.current_track else None,
            "is_playing": self.is_playing,
            "position": self.position,
            "duration": self.duration,
            "error_message": self.error_message,
        }


Observer = Callable[[PlaybackState], None]


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

class PlaybackCoordinator:
    """Owns one ``AudioOutput`` for its whole lifetime."""

    def __init__(
        self,
        output: AudioOutput,
        *,
        preview_limit: float = DEFAULT_PREVIEW_LIMIT,
    ):
        self._output = output
        self._window = PreviewWindow(preview_limit)

        self._lock = threading.RLock()
        self._jobs: Deque[Callable[[], None]] = deque()
        self._draining = False
        self._observers: List[Observer] = []
        self._last_notified = PlaybackState()

        self._load_id = 0
        self._load_failed = False
        self._current_track: Optional[Track] = None
        self._is_playing = False
        self._position = 0.0
        self._duration = 0.0
        self._error_message: Optional[str] = None

        output.bind(self._on_output_event)

    # -- read access --------------------------------------------------------

    @property
    def preview_limit(self) -> float:
        return self._window.limit

    @property
    def load_id(self) -> int:
        """Id of the current load; output events must carry it to be applied."""
        return self._load_id

    @property
    def state(self) -> PlaybackState:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> PlaybackState:
        return PlaybackState(
            current_track=self._current_track,
            is_playing=self._is_playing,
            position=self._position,
            duration=self._duration,
            error_message=self._error_message,
        )

    # -- observers ----------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call *observer* with a fresh snapshot after every state change."""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    # -- public operations --------------------------------------------------

    def play(self, track: Track) -> None:
        """Play *track*, resuming in place if it is already the current one."""
        self._submit(lambda: self._do_play(track))

    def pause(self) -> None:
        self._submit(self._do_pause)

    def toggle_play(self) -> None:
        self._submit(self._do_toggle)

    def seek(self, seconds: float) -> None:
        """Move to *seconds*, clamped into the preview window."""
        self._submit(lambda: self._do_seek(seconds))

    def close(self) -> None:
        """Stop and forget the current track (mini-player dismissed)."""
        self._submit(self._do_close)

    def relinquish(self) -> bool:
        """Pause on behalf of another audio source about to start.

        Returns True if the coordinator was playing.
        """
        with self._lock:
            was_playing = self._is_playing
            self._submit(self._do_pause)
        return was_playing

    # -- job queue ----------------------------------------------------------

    def _on_output_event(self, event: OutputEvent) -> None:
        self._submit(lambda: self._apply_event(event))

    def _submit(self, job: Callable[[], None]) -> None:
        with self._lock:
            self._jobs.append(job)
            if self._draining:
                return
            self._draining = True
            try:
                while self._jobs:
                    self._jobs.popleft()()
                    self._notify()
            finally:
                self._draining = False

    def _notify(self) -> None:
        snapshot = self._snapshot()
        if snapshot == self._last_notified:
            return
        self._last_notified = snapshot
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Playback observer %r failed", observer)

    # -- transitions --------------------------------------------------------

    def _do_play(self, track: Track) -> None:
        current = self._current_track
        if current is not None and current.id == track.id and not self._load_failed:
            if not self._is_playing:
                self._start_output()
            return

        if current is not None:
            self._output.pause()
            self._output.unload()

        self._load_id += 1
        self._current_track = track
        self._position = 0.0
        self._duration = 0.0
        self._error_message = None
        self._load_failed = False
        self._is_playing = True
        logger.info("Loading track %s (load %d)", track.id, self._load_id)

        try:
            self._output.load(track.audio_url, self._load_id)
            self._output.play()
        except Exception as exc:
            self._fail(str(exc) or type(exc).__name__)

    def _start_output(self) -> None:
        self._is_playing = True
        try:
            self._output.play()
        except Exception as exc:
            self._fail(str(exc) or type(exc).__name__)

    def _do_pause(self) -> None:
        if self._current_track is None or not self._is_playing:
            return
        self._output.pause()
        self._is_playing = False
        self._position = self._window.clamp(self._output.position)

    def _do_toggle(self) -> None:
        if self._current_track is None:
            return
        if self._is_playing:
            self._do_pause()
        else:
            self._start_output()

    def _do_seek(self, seconds: float) -> None:
        if self._current_track is None:
            return
        target = self._window.clamp(seconds)
        self._output.set_position(target)
        self._position = target

    def _do_close(self) -> None:
        if self._current_track is not None:
            self._output.pause()
            self._output.unload()
            logger.info("Closed track %s", self._current_track.id)
        # Anything still in flight for the old load is now stale.
        self._load_id += 1
        self._load_failed = False
        self._current_track = None
        self._is_playing = False
        self._position = 0.0
        self._duration = 0.0
        self._error_message = None

    def _fail(self, reason: str) -> None:
        track_id = self._current_track.id if self._current_track else None
        logger.warning("Load failed for track %s: %s", track_id, reason)
        self._is_playing = False
        self._load_failed = True
        self._error_message = reason or "load failed"

    # -- output events ------------------------------------------------------

    def _apply_event(self, event: OutputEvent) -> None:
        if self._current_track is None or event.load_id != self._load_id:
            logger.debug(
                "Dropping stale %s for load %d (current %d)",
                type(event).__name__,
                event.load_id,
                self._load_id,
            )
            return

        if isinstance(event, TimeUpdate):
            self._on_time_update(event.position)
        elif isinstance(event, MetadataLoaded):
            duration = self._window.effective_duration(event.duration)
            if duration is not None:
                self._duration = duration
        elif isinstance(event, Ended):
            self._is_playing = False
            self._position = 0.0
            self._output.set_position(0.0)
        elif isinstance(event, LoadFailed):
            self._fail(event.reason)

    def _on_time_update(self, position: float) -> None:
        if math.isnan(position):
            logger.debug("Ignoring NaN position for load %d", self._load_id)
            return
        if self._window.reached(position):
            # Ticks at or past the limit after the stop are ignored.
            if self._is_playing:
                logger.info(
                    "Preview limit %.0fs reached for %s",
                    self._window.limit,
                    self._current_track.id,
                )
                self._output.pause()
                self._output.set_position(0.0)
                self._is_playing = False
                self._position = 0.0
            return
        self._position = max(position, 0.0)
