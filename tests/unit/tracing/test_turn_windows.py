"""
Tests for session.turn window detection.
"""

import math

from trace_inspector.tracing.turn_windows import (
    TurnCursor,
    TurnWindow,
    build_turn_windows,
    find_turn_window,
)


class TestBuildTurnWindows:
    def test_window_ends_at_next_turn_start(self):
        windows = build_turn_windows([(100, "t2"), (0, "t1"), (250, "t3")])

        assert windows == [
            TurnWindow(key="t1", start=0, end_bound=100),
            TurnWindow(key="t2", start=100, end_bound=250),
            TurnWindow(key="t3", start=250, end_bound=math.inf),
        ]

    def test_repeated_key_keeps_earliest_start(self):
        windows = build_turn_windows([(40, "t1"), (0, "t1"), (20, "t2")])
        assert [(w.key, w.start) for w in windows] == [("t1", 0), ("t2", 20)]

    def test_empty(self):
        assert build_turn_windows([]) == []


class TestTurnWindowLookup:
    def test_contains_is_half_open(self):
        window = TurnWindow(key="t1", start=10, end_bound=20)

        assert window.contains(10)
        assert window.contains(19.5)
        assert not window.contains(20)
        assert not window.contains(9)

    def test_find_turn_window(self):
        windows = build_turn_windows([(0, "t1"), (100, "t2")])

        assert find_turn_window(windows, -1) is None
        assert find_turn_window(windows, 99).key == "t1"
        assert find_turn_window(windows, 100).key == "t2"
        assert find_turn_window(windows, 10**9).key == "t2"


class TestTurnCursor:
    def test_advances_with_sorted_times(self):
        cursor = TurnCursor(build_turn_windows([(10, "t1"), (50, "t2")]))

        assert cursor.advance(0) is None
        assert cursor.advance(10).key == "t1"
        assert cursor.advance(49).key == "t1"
        assert cursor.advance(50).key == "t2"
        assert cursor.advance(1000).key == "t2"

    def test_no_windows(self):
        assert TurnCursor([]).advance(5) is None
