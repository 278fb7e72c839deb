"""
Turn window detection shared by the tree and graph builders.

A turn marker (``session.turn.<n>``) opens a window that lasts until the
next turn marker starts. The marker's own end_time is ignored: turns often
end before their last logical children.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class TurnWindow:
    key: str  # observation id (tree) or normalized node name (graph)
    start: float  # epoch ms
    end_bound: float  # next turn's start, +inf for the last turn

    def contains(self, start_ms: float) -> bool:
        return self.start <= start_ms < self.end_bound


def build_turn_windows(turns: Iterable[tuple[float, str]]) -> list[TurnWindow]:
    """Build windows from ``(start_ms, key)`` pairs.

    Pairs are ordered by start time (ties by key); a key seen twice keeps its
    earliest start.
    """
    seen: set[str] = set()
    ordered = []
    for start, key in sorted(turns):
        if key in seen:
            continue
        seen.add(key)
        ordered.append((start, key))

    windows = []
    for idx, (start, key) in enumerate(ordered):
        end_bound = ordered[idx + 1][0] if idx + 1 < len(ordered) else math.inf
        windows.append(TurnWindow(key=key, start=start, end_bound=end_bound))
    return windows


def find_turn_window(
    windows: list[TurnWindow], start_ms: float
) -> Optional[TurnWindow]:
    """Return the window containing start_ms, if any."""
    for window in windows:
        if window.contains(start_ms):
            return window
    return None


class TurnCursor:
    """Walks turn windows alongside a chronologically sorted sequence.

    Start times passed to :meth:`advance` must be non-decreasing.
    """

    def __init__(self, windows: list[TurnWindow]):
        self._windows = windows
        self._idx = 0

    def advance(self, start_ms: float) -> Optional[TurnWindow]:
        """Return the window containing start_ms, or None before the first turn."""
        while (
            self._idx < len(self._windows)
            and start_ms >= self._windows[self._idx].end_bound
        ):
            self._idx += 1
        if self._idx >= len(self._windows):
            return None
        window = self._windows[self._idx]
        return window if window.contains(start_ms) else None
