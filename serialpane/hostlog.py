from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import IO, Optional


MAX_EVENTS = 200


@dataclass
class Event:
    ts: str
    kind: str  # HOST / WARN / ERR
    text: str


def _now_ts() -> str:
    return datetime.now().strftime("%H:%M:%S")


class HostLog:
    """Host-side events (not device lines): kept for the footer, optionally written to a file."""

    def __init__(self, path: Optional[Path] = None, max_events: int = MAX_EVENTS) -> None:
        self.events: list[Event] = []
        self.max_events = max(1, int(max_events))
        self.path = path
        self._fp: Optional[IO[str]] = None
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._fp = path.open("a", encoding="utf-8")

    def log(self, kind: str, text: str) -> Event:
        ev = Event(_now_ts(), kind, text)
        self.events.append(ev)
        if len(self.events) > self.max_events:
            del self.events[: len(self.events) - self.max_events]
        if self._fp is not None:
            self._fp.write(f"[{ev.ts}] {ev.kind} {ev.text}\n")
            self._fp.flush()
        return ev

    def host(self, text: str) -> Event:
        return self.log("HOST", text)

    def warn(self, text: str) -> Event:
        return self.log("WARN", text)

    def error(self, text: str) -> Event:
        return self.log("ERR", text)

    @property
    def last(self) -> Optional[Event]:
        return self.events[-1] if self.events else None

    def close(self) -> None:
        if self._fp is None:
            return
        try:
            self._fp.flush()
            self._fp.close()
        finally:
            self._fp = None
