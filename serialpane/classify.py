from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LineKind(Enum):
    NORMAL = "NORMAL"
    WARNING = "WARNING"
    ERROR = "ERROR"


# Checked in order; first match wins.
ERROR_KEYWORDS = ("err", "error")
WARNING_KEYWORDS = ("wrn", "warn")


@dataclass(frozen=True)
class LogLine:
    text: str
    kind: LineKind = LineKind.NORMAL


def classify(line: str) -> LineKind:
    low = line.lower()
    if any(k in low for k in ERROR_KEYWORDS):
        return LineKind.ERROR
    if any(k in low for k in WARNING_KEYWORDS):
        return LineKind.WARNING
    return LineKind.NORMAL


def make_line(text: str) -> LogLine:
    return LogLine(text, classify(text))
