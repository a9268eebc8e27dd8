from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Optional, Protocol, Union

import serial

from serialpane.classify import LogLine, make_line


READ_CHUNK_BYTES = 1024
MAX_LINE_BYTES = 4096


class IngestionError(Exception):
    """The byte source failed after it was opened."""


class SourceExhausted(Exception):
    """Raised by a finite source (replay file) once it has nothing left."""


class ByteSource(Protocol):
    def read(self, size: int = 1) -> bytes: ...

    def close(self) -> None: ...


@dataclass
class StreamEnd:
    reason: str
    error: Optional[BaseException] = None


QueueItem = Union[LogLine, StreamEnd]


class LineAssembler:
    """Turns arbitrary read chunks into complete classified lines.

    Bytes are held until a newline arrives so a UTF-8 sequence split across
    two reads decodes cleanly.
    """

    def __init__(self, max_line_bytes: int = MAX_LINE_BYTES) -> None:
        self.max_line_bytes = max(1, int(max_line_bytes))
        self._pending = b""

    @property
    def pending(self) -> bytes:
        return self._pending

    def feed(self, data: bytes) -> list[LogLine]:
        if not data:
            return []
        buf = self._pending + data
        *complete, self._pending = buf.split(b"\n")
        out = [make_line(_decode(raw)) for raw in complete]

        # A device that never sends a newline must not grow this forever.
        while len(self._pending) > self.max_line_bytes:
            cut = _utf8_boundary(self._pending, self.max_line_bytes)
            head = self._pending[:cut]
            self._pending = self._pending[cut:]
            out.append(make_line(_decode(head)))
        return out

    def flush(self) -> list[LogLine]:
        if not self._pending:
            return []
        raw, self._pending = self._pending, b""
        return [make_line(_decode(raw))]


def _utf8_boundary(buf: bytes, limit: int) -> int:
    """Largest cut <= limit that does not split a UTF-8 sequence."""
    cut = limit
    # Continuation bytes are 0b10xxxxxx; a sequence is at most 4 bytes.
    while cut > 0 and limit - cut < 3 and (buf[cut] & 0xC0) == 0x80:
        cut -= 1
    if cut == 0 or (buf[cut] & 0xC0) == 0x80:
        # Not valid UTF-8 here anyway; cut where asked.
        return limit
    return cut


def _decode(raw: bytes) -> str:
    return raw.rstrip(b"\r").decode("utf-8", errors="replace")


class Ingestor:
    """Reader thread: source -> LineAssembler -> queue.

    The queue is the only thing shared with the render loop. Any failure ends
    the thread with a ``StreamEnd`` item; reconnecting is left to the caller.
    """

    def __init__(
        self,
        source: ByteSource,
        out_q: "queue.Queue[QueueItem]",
        stop_evt: Optional[threading.Event] = None,
        chunk_size: int = READ_CHUNK_BYTES,
        assembler: Optional[LineAssembler] = None,
    ) -> None:
        self.source = source
        self.out_q = out_q
        self.stop_evt = stop_evt if stop_evt is not None else threading.Event()
        self.chunk_size = max(1, int(chunk_size))
        self.assembler = assembler if assembler is not None else LineAssembler()
        self._thread: Optional[threading.Thread] = None

    def _read_chunk(self) -> bytes:
        # pyserial: read what is already buffered, else block (up to the port
        # timeout) for the first byte.
        if not hasattr(self.source, "in_waiting"):
            return self.source.read(self.chunk_size)
        waiting = self.source.in_waiting
        return self.source.read(min(self.chunk_size, waiting) if waiting else 1)

    def step(self) -> int:
        """One read; returns the number of lines queued."""
        try:
            data = self._read_chunk()
        except (serial.SerialException, OSError) as exc:
            raise IngestionError(str(exc)) from exc
        lines = self.assembler.feed(data)
        for line in lines:
            self.out_q.put(line)
        return len(lines)

    def run(self) -> None:
        while not self.stop_evt.is_set():
            try:
                self.step()
            except SourceExhausted:
                for line in self.assembler.flush():
                    self.out_q.put(line)
                self.out_q.put(StreamEnd("end of replay"))
                return
            except IngestionError as exc:
                if self.stop_evt.is_set():
                    # Source closed under us on quit.
                    return
                self.out_q.put(StreamEnd(f"read failed: {exc}", exc))
                return

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run, name="serialpane-reader", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        self.stop_evt.set()
