from __future__ import annotations

from enum import Enum
from typing import Optional

from serialpane.classify import LogLine


DEFAULT_HISTORY_LINES = 10000


class ScrollMode(Enum):
    AUTO = "AUTO"  # follow the tail
    MANUAL = "MANUAL"  # position held by the user


class ScrollBuffer:
    """Append-only list of classified lines plus one pane's viewport cursor.

    The stored ``scroll_offset`` is only meaningful in MANUAL mode and may be
    stale (larger than the last valid offset) after the pane shrinks; every
    read goes through ``effective_offset`` which clamps it.

    ``max_lines`` caps the history (oldest dropped first). ``None`` or 0 keeps
    everything.
    """

    def __init__(self, max_lines: Optional[int] = DEFAULT_HISTORY_LINES) -> None:
        self.lines: list[LogLine] = []
        self.scroll_offset = 0
        self.mode = ScrollMode.AUTO
        self.max_lines = max_lines if max_lines and max_lines > 0 else None
        self.evicted = 0

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def is_following(self) -> bool:
        return self.mode is ScrollMode.AUTO

    def append(self, line: LogLine) -> None:
        self.lines.append(line)
        if self.max_lines is not None and len(self.lines) > self.max_lines:
            drop = len(self.lines) - self.max_lines
            del self.lines[:drop]
            self.evicted += drop
            # Keep a held view on the same lines it was showing.
            self.scroll_offset = max(0, self.scroll_offset - drop)

    def max_offset(self, height: int) -> int:
        return max(0, len(self.lines) - max(0, height))

    def effective_offset(self, height: int) -> int:
        bottom = self.max_offset(height)
        if self.mode is ScrollMode.AUTO:
            return bottom
        return min(max(0, self.scroll_offset), bottom)

    def scroll_up(self, height: int) -> None:
        cur = self.effective_offset(height)
        self.mode = ScrollMode.MANUAL
        self.scroll_offset = max(0, cur - 1)

    def scroll_down(self, height: int) -> None:
        if self.mode is ScrollMode.AUTO:
            return
        bottom = self.max_offset(height)
        self.scroll_offset = min(self.effective_offset(height) + 1, bottom)
        if self.scroll_offset == bottom:
            self.mode = ScrollMode.AUTO

    def reset_to_auto(self) -> None:
        self.mode = ScrollMode.AUTO

    def visible_window(self, height: int) -> tuple[list[LogLine], int]:
        if not self.lines:
            return [], 0
        start = self.effective_offset(height)
        if height <= 0:
            return [], start
        return self.lines[start : start + height], start
