"""Tests for serialpane.scroll"""
import random

import pytest

from serialpane.classify import make_line
from serialpane.scroll import ScrollBuffer, ScrollMode


def _filled(n, max_lines=None):
    buf = ScrollBuffer(max_lines)
    for i in range(n):
        buf.append(make_line(f"line {i}"))
    return buf


class TestAutoMode:
    def test_initially_auto_and_empty(self):
        buf = ScrollBuffer()
        assert buf.mode is ScrollMode.AUTO
        assert buf.is_following
        assert buf.visible_window(5) == ([], 0)

    @pytest.mark.parametrize("n", [0, 1, 3, 10, 25])
    @pytest.mark.parametrize("h", [1, 2, 5, 10, 30])
    def test_auto_shows_tail(self, n, h):
        buf = _filled(n)
        lines, start = buf.visible_window(h)
        assert lines == buf.lines[len(buf.lines) - min(n, h):]
        assert start == max(0, n - h)

    def test_append_does_not_touch_offset(self):
        buf = _filled(10)
        buf.scroll_up(4)
        before = buf.scroll_offset
        buf.append(make_line("more"))
        assert buf.scroll_offset == before

    def test_auto_ignores_stored_offset(self):
        buf = _filled(10)
        buf.scroll_offset = 2
        assert buf.effective_offset(4) == 6

    def test_scroll_down_in_auto_is_noop(self):
        buf = _filled(10)
        buf.scroll_down(4)
        assert buf.mode is ScrollMode.AUTO
        assert buf.effective_offset(4) == 6


class TestManualMode:
    def test_scroll_up_enters_manual_one_above_tail(self):
        buf = _filled(10)
        buf.scroll_up(4)
        assert buf.mode is ScrollMode.MANUAL
        assert buf.effective_offset(4) == 5

    def test_manual_view_holds_while_lines_arrive(self):
        buf = _filled(10)
        buf.scroll_up(4)
        for i in range(5):
            buf.append(make_line(f"new {i}"))
        lines, start = buf.visible_window(4)
        assert start == 5
        assert [l.text for l in lines] == ["line 5", "line 6", "line 7", "line 8"]

    def test_scroll_up_clamped_at_top(self):
        buf = _filled(3)
        for _ in range(10):
            buf.scroll_up(2)
        assert buf.effective_offset(2) == 0
        assert buf.mode is ScrollMode.MANUAL

    def test_scroll_up_on_empty_buffer(self):
        buf = ScrollBuffer()
        buf.scroll_up(5)
        assert buf.visible_window(5) == ([], 0)

    def test_scroll_down_returns_to_auto_at_bottom(self):
        buf = _filled(10)
        buf.scroll_up(4)
        buf.scroll_up(4)
        buf.scroll_down(4)
        assert buf.mode is ScrollMode.MANUAL
        buf.scroll_down(4)
        assert buf.mode is ScrollMode.AUTO

    def test_mode_recovery_exactly_at_bottom(self):
        buf = _filled(20)
        h = 6
        bottom = 20 - h
        buf.mode = ScrollMode.MANUAL
        buf.scroll_offset = 0
        steps = 0
        while buf.mode is ScrollMode.MANUAL:
            buf.scroll_down(h)
            steps += 1
            if buf.mode is ScrollMode.MANUAL:
                assert buf.effective_offset(h) < bottom
        assert steps == bottom
        assert buf.effective_offset(h) == bottom

    def test_short_buffer_recovers_on_first_scroll_down(self):
        buf = _filled(3)
        buf.mode = ScrollMode.MANUAL
        buf.scroll_offset = 0
        buf.scroll_down(10)
        assert buf.mode is ScrollMode.AUTO

    def test_reset_to_auto(self):
        buf = _filled(10)
        buf.scroll_up(4)
        buf.reset_to_auto()
        assert buf.mode is ScrollMode.AUTO
        assert buf.visible_window(4)[1] == 6

    def test_stale_offset_clamped_after_grow(self):
        buf = _filled(10)
        buf.scroll_up(2)  # offset 7
        # pane grows from 2 to 8 rows: last valid offset is 2
        lines, start = buf.visible_window(8)
        assert start == 2
        assert len(lines) == 8


class TestOffsetInvariant:
    def test_random_walk_stays_in_range(self):
        rng = random.Random(1234)
        buf = ScrollBuffer(None)
        for _ in range(2000):
            op = rng.choice(["append", "up", "down", "reset"])
            h = rng.randint(1, 12)
            if op == "append":
                buf.append(make_line("x"))
            elif op == "up":
                buf.scroll_up(h)
            elif op == "down":
                buf.scroll_down(h)
            else:
                buf.reset_to_auto()
            off = buf.effective_offset(h)
            assert 0 <= off <= max(0, len(buf) - h)
            lines, start = buf.visible_window(h)
            assert start == off
            assert len(lines) == min(h, len(buf))


class TestBoundedHistory:
    def test_cap_drops_oldest(self):
        buf = _filled(15, max_lines=10)
        assert len(buf) == 10
        assert buf.lines[0].text == "line 5"
        assert buf.evicted == 5

    def test_unbounded_when_zero(self):
        buf = _filled(50, max_lines=0)
        assert len(buf) == 50
        assert buf.max_lines is None

    def test_eviction_keeps_manual_view_on_same_lines(self):
        buf = _filled(10, max_lines=10)
        buf.scroll_up(3)
        buf.scroll_up(3)  # offset 5 -> "line 5".."line 7"
        buf.append(make_line("line 10"))
        buf.append(make_line("line 11"))
        lines, start = buf.visible_window(3)
        assert start == 3
        assert [l.text for l in lines] == ["line 5", "line 6", "line 7"]

    def test_zero_height_window(self):
        buf = _filled(5)
        assert buf.visible_window(0)[0] == []
