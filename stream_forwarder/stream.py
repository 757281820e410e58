import codecs
from dataclasses import dataclass
from typing import Callable, Optional, Literal, Tuple

StreamName = Literal["stdout", "stderr"]
TextSink = Callable[[str], None]
OutputCallback = Callable[[str, StreamName], None]


class DecodingReader:
    """
    Text source over a byte-reading function such as `pipe.read1` or `channel.recv`.
    `read(n)` returns whatever is available (at most n characters), '' at end-of-stream.
    """
    def __init__(self, read_bytes: Callable[[int], bytes], encoding: str = "utf-8"):
        self._read_bytes = read_bytes
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    def read(self, size: int = -1) -> str:
        if size is None or size < 0:
            size = 4096
        while True:
            data = self._read_bytes(size)
            text = self._decoder.decode(data, final=not data)
            # A partial multi-byte sequence decodes to '', keep reading
            if text or not data:
                return text


def default_printer(text: str, stream: StreamName) -> None:
    # Keep it minimal, callers can override
    print(f"[{stream}] {text}", end="")  # lines already include their newline


def select_callback(
    output_callback: Optional[OutputCallback], verbose: bool, line_buffered: bool
) -> Tuple[Optional[OutputCallback], bool]:
    """
    Pick the live-output callback and whether it should only see whole lines.
    The default printer tags every call with the stream name, so it is always
    line buffered; otherwise a line read in two pieces would be tagged twice.
    """
    if output_callback:
        return output_callback, line_buffered
    if verbose:
        return default_printer, True
    return None, line_buffered


@dataclass
class SinkSet:
    """
    The consumers a forwarder dispatches to.
    Each category is optional; an absent sink is never invoked.
    """
    write: Optional[TextSink] = None
    write_line: Optional[TextSink] = None
    capture: bool = False

    def has_raw_sink(self) -> bool:
        return self.write is not None

    def has_line_sink(self) -> bool:
        return self.write_line is not None

    def capturing(self) -> bool:
        return self.capture


def stream_callbacks(
    cb: Optional[OutputCallback], which: StreamName, line_buffered: bool = False
) -> Tuple[Optional[TextSink], Optional[TextSink]]:
    """
    Bind a `fn(text, stream)` callback to one stream.
    Returns the (write, write_line) pair for `StreamForwarder.forward_to`;
    both are None when there is no callback. With `line_buffered` there is
    no raw sink, so the callback only ever sees whole lines.
    """
    if cb is None:
        return None, None

    def relay(text: str) -> None:
        cb(text, which)

    return (None if line_buffered else relay), relay
