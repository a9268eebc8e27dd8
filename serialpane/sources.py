from __future__ import annotations

import time
from pathlib import Path
from typing import IO

import serial
from serial.tools import list_ports

from serialpane.ingest import SourceExhausted


DEFAULT_BAUD = 115200
DEFAULT_TIMEOUT_S = 1.0


def detect_port() -> str:
    """First port the OS reports. No port at all is a startup failure."""
    ports = [p for p in list_ports.comports() if p.device]
    if not ports:
        raise SystemExit("No serial ports found. Pass --port /dev/ttyUSB0 (or similar).")
    return ports[0].device


def open_serial(port: str, baud: int = DEFAULT_BAUD, timeout_s: float = DEFAULT_TIMEOUT_S) -> serial.Serial:
    try:
        return serial.Serial(port, baud, timeout=timeout_s)
    except (serial.SerialException, OSError, ValueError) as exc:
        raise SystemExit(f"Failed to open {port}: {exc}")


class ReplaySource:
    """Plays a captured raw log back one line per tick.

    Behaves like a serial port to the Ingestor: ``read`` returns bytes, and
    once the file is used up it raises ``SourceExhausted``.
    """

    def __init__(self, path: Path, rate_hz: float = 20.0) -> None:
        self.path = Path(path)
        self.dt = 0.0 if rate_hz <= 0 else 1.0 / float(rate_hz)
        self._f: IO[bytes] = self.path.open("rb")
        self.closed = False

    def read(self, size: int = 1) -> bytes:
        if self.closed:
            raise SourceExhausted(str(self.path))
        try:
            chunk = self._f.readline()
        except ValueError:
            # closed by the render thread mid-read
            raise SourceExhausted(str(self.path))
        if not chunk:
            raise SourceExhausted(str(self.path))
        if self.dt:
            time.sleep(self.dt)
        return chunk

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._f.close()


def open_replay(path: Path, rate_hz: float) -> ReplaySource:
    try:
        return ReplaySource(path, rate_hz)
    except OSError as exc:
        raise SystemExit(f"Failed to open replay file {path}: {exc}")
