"""Preview window policy — pure logic, no I/O.

A listener only ever hears the first ``limit`` seconds of a beat.  Both the
shared coordinator and page-local players apply the same rules:

- seek targets are clamped into ``[0, limit]``
- the duration shown to listeners is ``min(native, limit)``
- reaching ``limit`` while playing is a hard stop and rewind
"""

from __future__ import annotations

import math

DEFAULT_PREVIEW_LIMIT = 90.0  # seconds


class PreviewWindow:
    """Clamp helper bound to one preview limit."""

    __slots__ = ("limit",)

    def __init__(self, limit: float = DEFAULT_PREVIEW_LIMIT):
        if not limit > 0:
            raise ValueError(f"Preview limit must be positive, got {limit!r}")
        self.limit = float(limit)

    def clamp(self, seconds: float) -> float:
        """Clamp a seek target into the window; NaN maps to 0."""
        if math.isnan(seconds):
            return 0.0
        return min(max(float(seconds), 0.0), self.limit)

    def effective_duration(self, native: float) -> float | None:
        """Duration exposed to listeners, or None if *native* is unusable.

        Live streams report an infinite duration; those get the full window.
        """
        if math.isnan(native) or native < 0:
            return None
        return min(float(native), self.limit)

    def reached(self, position: float) -> bool:
        return position >= self.limit
