#!/usr/bin/env python3
from __future__ import annotations

import curses
import queue
from dataclasses import dataclass
from typing import Optional

from serialpane.config import MonitorConfig, build_parser, resolve_config
from serialpane.hostlog import HostLog
from serialpane.ingest import ByteSource, Ingestor, QueueItem, StreamEnd
from serialpane.panes import PaneRect, Panes, project, split_layout
from serialpane.scroll import ScrollBuffer
from serialpane.sources import detect_port, open_replay, open_serial


TICK_MS = 100
MAX_DRAIN_PER_TICK = 2000

MAIN = "main"
DIAG = "diag"

QUIT = "quit"
SCROLL_UP = "scroll_up"
SCROLL_DOWN = "scroll_down"
RESET = "reset"

# key code -> (action, pane). Anything not listed is ignored.
KEYMAP: dict[int, tuple[str, Optional[str]]] = {
    ord("q"): (QUIT, None),
    ord("Q"): (QUIT, None),
    27: (QUIT, None),  # ESC
    3: (QUIT, None),  # Ctrl+C
    curses.KEY_UP: (SCROLL_UP, MAIN),
    ord("k"): (SCROLL_UP, MAIN),
    curses.KEY_DOWN: (SCROLL_DOWN, MAIN),
    ord("j"): (SCROLL_DOWN, MAIN),
    ord("a"): (RESET, MAIN),
    ord("w"): (SCROLL_UP, DIAG),
    ord("s"): (SCROLL_DOWN, DIAG),
    ord("d"): (RESET, DIAG),
}


@dataclass
class StreamState:
    source_name: str
    baud: Optional[int] = None
    ended: bool = False
    end_reason: str = ""


def key_action(ch: int) -> Optional[tuple[str, Optional[str]]]:
    return KEYMAP.get(ch)


def apply_key(ch: int, panes: Panes, main_h: int, diag_h: int) -> bool:
    """Apply one key to the panes. Returns False when the key means quit."""
    hit = key_action(ch)
    if hit is None:
        return True
    action, pane = hit
    if action == QUIT:
        return False
    buf, h = (panes.main, main_h) if pane == MAIN else (panes.diag, diag_h)
    if action == SCROLL_UP:
        buf.scroll_up(h)
    elif action == SCROLL_DOWN:
        buf.scroll_down(h)
    elif action == RESET:
        buf.reset_to_auto()
    return True


def drain(
    q_lines: "queue.Queue[QueueItem]",
    panes: Panes,
    state: StreamState,
    log: HostLog,
    limit: int = MAX_DRAIN_PER_TICK,
) -> int:
    """Move queued lines into the panes. Bounded so one burst cannot freeze input."""
    drained = 0
    while drained < limit:
        try:
            item = q_lines.get_nowait()
        except queue.Empty:
            break
        drained += 1
        if isinstance(item, StreamEnd):
            state.ended = True
            state.end_reason = item.reason
            if item.error is not None:
                log.error(f"stream ended: {item.reason}")
            else:
                log.host(f"stream ended: {item.reason}")
            continue
        panes.dispatch(item)
    return drained


def _safe_addstr(win: "curses._CursesWindow", y: int, x: int, s: str, attr: int = 0) -> None:
    try:
        max_y, max_x = win.getmaxyx()
        if y < 0 or y >= max_y or x >= max_x:
            return
        if x < 0:
            s = s[-x:]
            x = 0
        s = s[: max(0, max_x - x)]
        if not s:
            return
        win.addstr(y, x, s, attr)
    except curses.error:
        # Writing the bottom-right cell raises after drawing.
        return


def _draw_box(win: "curses._CursesWindow", rect: PaneRect, title: str = "") -> None:
    y, x, h, w = rect.y, rect.x, rect.h, rect.w
    if h < 2 or w < 2:
        return

    _safe_addstr(win, y, x, "+" + ("-" * (w - 2)) + "+")
    for row in range(y + 1, y + h - 1):
        _safe_addstr(win, row, x, "|")
        _safe_addstr(win, row, x + w - 1, "|")
    _safe_addstr(win, y + h - 1, x, "+" + ("-" * (w - 2)) + "+")

    if title and w >= 6:
        t = f" {title} "
        t = t[: max(0, w - 4)]
        _safe_addstr(win, y, x + 2, t)


def _init_colors() -> dict[str, int]:
    # color name -> curses attribute
    colors: dict[str, int] = {}
    if not curses.has_colors():
        return colors

    curses.start_color()
    curses.use_default_colors()

    _P_GREEN = 1
    _P_YELLOW = 2
    _P_RED = 3

    curses.init_pair(_P_GREEN, curses.COLOR_GREEN, -1)
    curses.init_pair(_P_YELLOW, curses.COLOR_YELLOW, -1)
    curses.init_pair(_P_RED, curses.COLOR_RED, -1)

    colors.update(
        {
            "green": curses.color_pair(_P_GREEN),
            "yellow": curses.color_pair(_P_YELLOW),
            "red": curses.color_pair(_P_RED),
        }
    )
    return colors


def _layout(max_y: int, max_x: int) -> tuple[PaneRect, PaneRect]:
    # Row 0 is the header, last row is the footer.
    return split_layout(1, max_y - 2, max_x)


def _pane_title(name: str, buf: ScrollBuffer, h: int) -> str:
    mode = buf.mode.value
    if not buf.lines:
        return f"{name} [{mode}] 0 lines"
    first = buf.effective_offset(h) + 1
    last = min(len(buf), first + max(0, h) - 1)
    return f"{name} [{mode}] {first}-{last}/{len(buf)}"


def _draw_pane(
    stdscr: "curses._CursesWindow",
    rect: PaneRect,
    name: str,
    buf: ScrollBuffer,
    colors: dict[str, int],
) -> None:
    geo = rect.inner
    _draw_box(stdscr, rect, _pane_title(name, buf, geo.height))
    for i, (text, color) in enumerate(project(buf, geo)):
        _safe_addstr(stdscr, rect.y + 1 + i, rect.x + 1, text, colors.get(color, 0))


def _draw(
    stdscr: "curses._CursesWindow",
    panes: Panes,
    state: StreamState,
    log: HostLog,
    colors: dict[str, int],
) -> None:
    stdscr.erase()
    max_y, max_x = stdscr.getmaxyx()

    link = f"{state.source_name} @ {state.baud}" if state.baud else state.source_name
    status = f"STREAM ENDED ({state.end_reason})" if state.ended else "live"
    head = f"Serial Monitor | {link} | {status} | Q=quit"
    _safe_addstr(stdscr, 0, 0, head, colors.get("red", 0) if state.ended else 0)

    main_rect, diag_rect = _layout(max_y, max_x)
    _draw_pane(stdscr, main_rect, "Serial Monitor", panes.main, colors)
    _draw_pane(stdscr, diag_rect, "Errors and Warnings", panes.diag, colors)

    footer = "Up/Down:scroll  a:follow  w/s:scroll errors  d:follow errors  q:quit"
    ev = log.last
    if ev is not None:
        footer = f"[{ev.ts}] {ev.kind} {ev.text}"
    _safe_addstr(stdscr, max_y - 1, 0, footer[: max(0, max_x - 1)])

    stdscr.refresh()


def _open_source(cfg: MonitorConfig) -> tuple[ByteSource, StreamState]:
    if cfg.replay is not None:
        return open_replay(cfg.replay, cfg.replay_rate_hz), StreamState(f"replay:{cfg.replay.name}")
    port = cfg.port if cfg.port is not None else detect_port()
    print(f"Connecting to {port}...")
    ser = open_serial(port, cfg.baud, cfg.timeout_s)
    print(f"Connected to {port} at {cfg.baud} baud.")
    return ser, StreamState(port, cfg.baud)


def run_tui(cfg: MonitorConfig) -> int:
    try:
        log = HostLog(cfg.events_file)
    except OSError as exc:
        raise SystemExit(f"Failed to open events file {cfg.events_file}: {exc}")
    try:
        source, state = _open_source(cfg)
    except SystemExit:
        log.close()
        raise
    log.host(f"reading {state.source_name}")

    q_lines: "queue.Queue[QueueItem]" = queue.Queue()
    ingestor = Ingestor(source, q_lines)
    ingestor.start()

    panes = Panes(cfg.history_lines)

    def _curses_main(stdscr: "curses._CursesWindow") -> int:
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        stdscr.keypad(True)
        stdscr.timeout(TICK_MS)
        colors = _init_colors()

        while True:
            drain(q_lines, panes, state, log)
            _draw(stdscr, panes, state, log, colors)

            try:
                ch = stdscr.getch()
            except KeyboardInterrupt:
                ch = ord("q")

            if ch == -1 or ch == curses.KEY_RESIZE:
                continue

            max_y, max_x = stdscr.getmaxyx()
            main_rect, diag_rect = _layout(max_y, max_x)
            if not apply_key(ch, panes, main_rect.inner.height, diag_rect.inner.height):
                return 0

    try:
        return curses.wrapper(_curses_main)
    finally:
        # Abandon any in-flight read; the reader is a daemon thread.
        ingestor.stop()
        try:
            source.close()
        except Exception:
            pass
        log.close()
        if state.ended:
            print(f"Stream ended: {state.end_reason}")


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    try:
        cfg = resolve_config(args)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Bad config: {exc}")
    return run_tui(cfg)


if __name__ == "__main__":
    raise SystemExit(main())
