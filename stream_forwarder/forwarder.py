"""Line-buffering stream forwarder.

Reads a text source in chunks, normalizes line terminators and dispatches the
text to a raw-chunk sink, a line sink and an optional capture.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from .stream import SinkSet, TextSink
from .exceptions import (
    ForwarderConfigurationError,
    InvalidBufferSizeError,
    StreamReadError,
)

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 4096
LINE_TERMINATOR = "\n"


class TextSource(Protocol):
    def read(self, size: int = -1) -> str: ...


@dataclass
class PassState:
    """Mutable state of one forwarding pass."""
    pending: List[str] = field(default_factory=list)
    captured: List[str] = field(default_factory=list)
    held_cr: bool = False  # '\r' seen, waiting on the next character
    deferred: bool = False  # last raw flush was skipped for a held '\r'
    chars_read: int = 0


def validate_buffer_size(buffer_size: int) -> int:
    if isinstance(buffer_size, bool) or not isinstance(buffer_size, int) or buffer_size < 1:
        raise InvalidBufferSizeError(f"Buffer size must be a positive integer, got {buffer_size!r}")
    return buffer_size


def should_flush_raw(sinks: SinkSet, state: PassState, chunk_had_terminator: bool) -> bool:
    """Size-triggered flush: a whole chunk went by without a line terminator.

    A held carriage return postpones the flush for one chunk only, so a CRLF
    split across reads still ends a line while a run of lone CRs keeps flushing.
    """
    return (
        sinks.has_raw_sink()
        and not chunk_had_terminator
        and bool(state.pending)
        and (state.deferred or not state.held_cr)
    )


class StreamForwarder:
    """Forwards a character stream to optional raw, line and capture sinks.

    Usage:
        forwarder = StreamForwarder(buffer_size=4096)
        forwarder.forward_to(write=sys.stdout.write, write_line=sys.stdout.write)
        forwarder.capture()
        forwarder.read(source)
        text = forwarder.get_captured_output()

    A forwarder runs one pass at a time, on the calling thread. To relay
    several streams at once use one forwarder per stream.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        """
        Args:
            buffer_size: Number of characters requested from the source per read
                         (must be >= 1)

        Raises:
            InvalidBufferSizeError: If buffer_size is not a positive integer
        """
        self.buffer_size = validate_buffer_size(buffer_size)
        self._sinks = SinkSet()
        self._forwarding = False
        self._reading = False
        self._captured = ""

    @property
    def sinks(self) -> SinkSet:
        return self._sinks

    def forward_to(self, write: Optional[TextSink] = None, write_line: Optional[TextSink] = None) -> None:
        """Register the raw-chunk sink and the line sink (either may be None).

        Raises:
            ForwarderConfigurationError: If sinks were already registered or a pass is running
        """
        self._ensure_idle()
        if self._forwarding:
            raise ForwarderConfigurationError("Already forwarding output")
        self._forwarding = True
        self._sinks.write = write
        self._sinks.write_line = write_line

    def capture(self) -> None:
        """Keep a newline-normalized transcript of every pass."""
        self._ensure_idle()
        if self._sinks.capturing():
            raise ForwarderConfigurationError("Already capturing output")
        self._sinks.capture = True

    def get_captured_output(self) -> str:
        """Return the transcript of the last completed pass ('' when not capturing)."""
        return self._captured

    def read(self, source: TextSource) -> None:
        """
        Consume `source` to end-of-stream, dispatching to the registered sinks.

        Args:
            source: Object with a `read(n)` method returning '' at end-of-stream

        Raises:
            StreamReadError: If the source fails; buffered content is discarded
        """
        self._ensure_idle()
        self._reading = True
        self._captured = ""
        state = PassState()
        try:
            while True:
                try:
                    chunk = source.read(self.buffer_size)
                except Exception as e:
                    logger.error(f"Read failed after {state.chars_read} chars: {e}")
                    raise StreamReadError(f"Failed to read from source: {e}") from e
                if not chunk:
                    break
                state.chars_read += len(chunk)
                self._consume(chunk, state)

            self._finish(state)
            if self._sinks.capturing():
                self._captured = "".join(state.captured)
            logger.debug(f"Forwarding pass finished after {state.chars_read} chars")
        finally:
            self._reading = False

    def _consume(self, chunk: str, state: PassState) -> None:
        had_terminator = False
        for ch in chunk:
            if state.held_cr:
                state.held_cr = False
                if ch == "\n":
                    self._end_line(state)
                    had_terminator = True
                    continue
                self._append("\r", state)

            if ch == "\r":
                state.held_cr = True
            elif ch == "\n":
                self._end_line(state)
                had_terminator = True
            else:
                self._append(ch, state)

        if should_flush_raw(self._sinks, state, had_terminator):
            # a still-held CR stays out of the flushed text
            self._flush_raw(state)
            state.deferred = False
        else:
            state.deferred = state.held_cr and not had_terminator and self._sinks.has_raw_sink()

    def _append(self, ch: str, state: PassState) -> None:
        if self._sinks.has_raw_sink() or self._sinks.has_line_sink():
            state.pending.append(ch)
        if self._sinks.capturing():
            state.captured.append(ch)

    def _end_line(self, state: PassState) -> None:
        line = "".join(state.pending)
        state.pending.clear()
        if self._sinks.capturing():
            state.captured.append(os.linesep)
        if self._sinks.has_line_sink():
            self._sinks.write_line(line + LINE_TERMINATOR)

    def _flush_raw(self, state: PassState) -> None:
        text = "".join(state.pending)
        state.pending.clear()
        self._sinks.write(text)

    def _finish(self, state: PassState) -> None:
        # An unmatched trailing '\r' is ordinary text
        if state.held_cr:
            state.held_cr = False
            self._append("\r", state)

        if not state.pending:
            return
        if self._sinks.has_raw_sink():
            self._flush_raw(state)
        elif self._sinks.has_line_sink():
            line = "".join(state.pending)
            state.pending.clear()
            self._sinks.write_line(line + LINE_TERMINATOR)
        else:
            state.pending.clear()

    def _ensure_idle(self) -> None:
        if self._reading:
            raise ForwarderConfigurationError("A forwarding pass is already running")

    def __repr__(self) -> str:
        s = self._sinks
        return (
            f"StreamForwarder(buffer_size={self.buffer_size}, raw={s.has_raw_sink()}, "
            f"line={s.has_line_sink()}, capture={s.capturing()})"
        )
