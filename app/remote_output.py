"""Browser-backed audio output.

The physical output lives in the listener's browser (a single ``<audio>``
element).  The server side keeps:

- a bounded, sequence-numbered command log the page drains with
  ``GET /player/commands?after=<seq>``,
- the last position/duration the page reported through ``POST /player/events``.

Commands:
  ``{"seq": 7, "op": "load", "url": "...", "load_id": 3}``
  ``{"seq": 8, "op": "play"}`` / ``pause`` / ``unload``
  ``{"seq": 9, "op": "seek", "position": 12.5}``
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Any, Deque, Dict, List

from core.output import (
    AudioOutput,
    Ended,
    LoadFailed,
    MetadataLoaded,
    OutputEvent,
    TimeUpdate,
)

logger = logging.getLogger(__name__)


class RemoteOutput(AudioOutput):
    """Command log + reported state for one browser audio element."""

    def __init__(self, backlog: int = 256):
        super().__init__()
        self._commands: Deque[Dict[str, Any]] = deque(maxlen=backlog)
        self._seq = 0
        self._position = 0.0
        self._duration = 0.0
        self._load_id = 0

    # -- command log --------------------------------------------------------

    @property
    def latest_seq(self) -> int:
        return self._seq

    def commands_after(self, seq: int) -> List[Dict[str, Any]]:
        """Commands the page has not applied yet.

        A page that fell further behind than the backlog only gets what is
        left; the newest ``load`` is always enough to resynchronise.
        """
        return [dict(cmd) for cmd in self._commands if cmd["seq"] > seq]

    def _push(self, op: str, **fields: Any) -> None:
        self._seq += 1
        self._commands.append({"seq": self._seq, "op": op, **fields})
        logger.debug("Queued %s command #%d", op, self._seq)

    # -- AudioOutput --------------------------------------------------------

    def load(self, url: str, load_id: int) -> None:
        self._load_id = load_id
        self._position = 0.0
        self._duration = 0.0
        self._push("load", url=url, load_id=load_id)

    def play(self) -> None:
        self._push("play")

    def pause(self) -> None:
        self._push("pause")

    def set_position(self, seconds: float) -> None:
        self._position = seconds
        self._push("seek", position=seconds)

    def unload(self) -> None:
        self._position = 0.0
        self._duration = 0.0
        self._push("unload")

    @property
    def position(self) -> float:
        return self._position

    @property
    def duration(self) -> float:
        return self._duration

    # -- events from the page -----------------------------------------------

    def report(self, event: OutputEvent) -> None:
        """Record what the page reported and forward it to the player.

        Events for an older load are forwarded untouched; the player drops them.
        """
        if event.load_id == self._load_id:
            if isinstance(event, TimeUpdate):
                if not math.isnan(event.position):
                    self._position = event.position
            elif isinstance(event, MetadataLoaded):
                self._duration = event.duration
            elif isinstance(event, Ended):
                self._position = 0.0
            elif isinstance(event, LoadFailed):
                logger.info("Page reported load failure for load %d: %s", event.load_id, event.reason)
        self.emit(event)
