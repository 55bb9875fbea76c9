"""Page-local player (beat detail waveform) that defers to the coordinator.

The detail page renders its own waveform with its own output, so it is a
second potential audio source.  It keeps the single-source rule by:

- pausing the coordinator on creation if it is playing a different beat,
- asking the coordinator to relinquish before it starts producing audio,
- pausing itself whenever the coordinator starts playing.

It applies the same preview window to its own output.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional

from core.models import Track
from core.output import (
    AudioOutput,
    Ended,
    LoadFailed,
    MetadataLoaded,
    OutputEvent,
    TimeUpdate,
)
from core.playback import PlaybackCoordinator, PlaybackState
from core.preview import PreviewWindow

logger = logging.getLogger(__name__)


class LocalPlayer:
    """Single-track player bound to one page."""

    def __init__(self, coordinator: PlaybackCoordinator, track: Track, output: AudioOutput):
        self.track = track
        self.is_playing = False
        self.position = 0.0
        self.duration = 0.0
        self.native_duration: Optional[float] = None
        self.error_message: Optional[str] = None

        self._coordinator = coordinator
        self._output = output
        self._window = PreviewWindow(coordinator.preview_limit)
        self._load_id = 1
        self._load_failed = False

        state = coordinator.state
        if state.is_playing and state.current_track is not None and state.current_track.id != track.id:
            coordinator.pause()

        output.bind(self._on_output_event)
        output.load(track.audio_url, self._load_id)
        self._unsubscribe: Optional[Callable[[], None]] = coordinator.subscribe(self._on_coordinator)

    # -- operations ---------------------------------------------------------

    def play(self) -> None:
        if self._unsubscribe is None:
            raise RuntimeError("LocalPlayer is detached")
        if self.is_playing:
            return
        self._coordinator.relinquish()
        if self._load_failed:
            self._reload()
        self.is_playing = True
        self._output.play()

    def pause(self) -> None:
        if not self.is_playing:
            return
        self._output.pause()
        self.is_playing = False

    def toggle_play(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def seek(self, seconds: float) -> None:
        target = self._window.clamp(seconds)
        self._output.set_position(target)
        self.position = target

    def detach(self) -> None:
        """Leave the page: stop, release the output, stop observing."""
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None
        self.pause()
        self._output.unload()
        self._output.unbind()
        self._load_id += 1

    def _reload(self) -> None:
        """Load the track again after a failed load."""
        self._load_id += 1
        self._load_failed = False
        self.error_message = None
        self.position = 0.0
        self.duration = 0.0
        self.native_duration = None
        logger.info("Reloading %s on the local player (load %d)", self.track.id, self._load_id)
        self._output.load(self.track.audio_url, self._load_id)

    # -- callbacks ----------------------------------------------------------

    def _on_coordinator(self, state: PlaybackState) -> None:
        if state.is_playing and self.is_playing:
            logger.debug("Coordinator started %s, pausing local player", state.current_track)
            self.pause()

    def _on_output_event(self, event: OutputEvent) -> None:
        if event.load_id != self._load_id:
            return
        if isinstance(event, TimeUpdate):
            if math.isnan(event.position):
                return
            if self._window.reached(event.position):
                if self.is_playing:
                    self._output.pause()
                    self._output.set_position(0.0)
                    self.is_playing = False
                    self.position = 0.0
                return
            self.position = max(event.position, 0.0)
        elif isinstance(event, MetadataLoaded):
            duration = self._window.effective_duration(event.duration)
            if duration is not None:
                self.native_duration = event.duration
                self.duration = duration
        elif isinstance(event, Ended):
            self.is_playing = False
            self.position = 0.0
        elif isinstance(event, LoadFailed):
            logger.warning("Local player failed to load %s: %s", self.track.id, event.reason)
            self.is_playing = False
            self.error_message = event.reason or "load failed"
            self._load_failed = True
