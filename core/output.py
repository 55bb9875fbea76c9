"""Audio output contract.

An output is the single sound-producing handle (a browser ``<audio>`` element,
a waveform view's media element, …).  The player drives it with commands and
listens to the events it reports back.

Every load carries a ``load_id``; outputs stamp each event with the id of the
load it belongs to so that late events for a replaced track can be dropped.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Union


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimeUpdate:
    load_id: int
    position: float


@dataclass(frozen=True)
class MetadataLoaded:
    load_id: int
    duration: float


@dataclass(frozen=True)
class Ended:
    load_id: int


@dataclass(frozen=True)
class LoadFailed:
    """The output could not open the URL (network error, unsupported format)."""

    load_id: int
    reason: str = ""


OutputEvent = Union[TimeUpdate, MetadataLoaded, Ended, LoadFailed]
OutputListener = Callable[[OutputEvent], None]


# ---------------------------------------------------------------------------
# Output resource
# ---------------------------------------------------------------------------

class AudioOutput(ABC):
    """Commands a player may issue to its output resource."""

    def __init__(self) -> None:
        self._listener: Optional[OutputListener] = None

    def bind(self, listener: OutputListener) -> None:
        """Attach the single event listener (the owning player)."""
        if self._listener is not None and self._listener != listener:
            raise RuntimeError("Output already bound to another player")
        self._listener = listener

    def unbind(self) -> None:
        self._listener = None

    def emit(self, event: OutputEvent) -> None:
        """Report an event to the bound listener (no-op when unbound)."""
        if self._listener is not None:
            self._listener(event)

    @abstractmethod
    def load(self, url: str, load_id: int) -> None:
        """Replace whatever is loaded with *url*; position starts at 0."""

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def set_position(self, seconds: float) -> None: ...

    @abstractmethod
    def unload(self) -> None:
        """Stop and release the current source, keeping the resource."""

    @property
    @abstractmethod
    def position(self) -> float: ...

    @property
    @abstractmethod
    def duration(self) -> float:
        """Native duration of the loaded source, 0 while unknown."""
