from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from serialpane.classify import LineKind, LogLine
from serialpane.scroll import DEFAULT_HISTORY_LINES, ScrollBuffer


MAIN_PANE_FRACTION = 0.7

# Fixed kind -> color name; the display maps names to curses pairs.
KIND_COLORS = {
    LineKind.NORMAL: "green",
    LineKind.WARNING: "yellow",
    LineKind.ERROR: "red",
}


@dataclass(frozen=True)
class ViewportGeometry:
    width: int
    height: int


@dataclass(frozen=True)
class PaneRect:
    y: int
    x: int
    h: int
    w: int

    @property
    def inner(self) -> ViewportGeometry:
        # One-cell border on every side.
        return ViewportGeometry(width=max(0, self.w - 2), height=max(0, self.h - 2))


def split_layout(top: int, height: int, width: int, fraction: float = MAIN_PANE_FRACTION) -> tuple[PaneRect, PaneRect]:
    """Stack main over diagnostic inside rows [top, top + height)."""
    height = max(0, height)
    main_h = int(round(height * fraction))
    diag_h = height - main_h
    return PaneRect(top, 0, main_h, width), PaneRect(top + main_h, 0, diag_h, width)


def project(buffer: ScrollBuffer, geometry: ViewportGeometry) -> list[tuple[str, str]]:
    lines, _ = buffer.visible_window(geometry.height)
    width = max(0, geometry.width)
    return [(line.text[:width], KIND_COLORS[line.kind]) for line in lines]


class Panes:
    """The single fan-out point from the stream into both scroll buffers."""

    def __init__(self, history_lines: Optional[int] = DEFAULT_HISTORY_LINES) -> None:
        self.main = ScrollBuffer(history_lines)
        self.diag = ScrollBuffer(history_lines)
        self.counts = {kind: 0 for kind in LineKind}

    def dispatch(self, line: LogLine) -> None:
        self.counts[line.kind] += 1
        self.main.append(line)
        if line.kind is not LineKind.NORMAL:
            self.diag.append(line)
