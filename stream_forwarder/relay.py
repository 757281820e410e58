"""Concurrent relay of several output streams, one forwarder per stream."""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Dict, Optional

from .forwarder import StreamForwarder, TextSource
from .stream import OutputCallback, StreamName, stream_callbacks
from .exceptions import OverallTimeoutError

logger = logging.getLogger(__name__)


def relay_forwarder(
    cb: Optional[OutputCallback], which: StreamName, buffer_size: int, line_buffered: bool = False
) -> StreamForwarder:
    """Build a capturing forwarder that relays to `cb` tagged with the stream name."""
    forwarder = StreamForwarder(buffer_size)
    if cb is not None:
        write, write_line = stream_callbacks(cb, which, line_buffered=line_buffered)
        forwarder.forward_to(write=write, write_line=write_line)
    forwarder.capture()
    return forwarder


def relay_streams(
    sources: Dict[StreamName, TextSource],
    output_callback: Optional[OutputCallback],
    buffer_size: int,
    timeout: Optional[float] = None,
    line_buffered: bool = False,
    on_abort: Optional[Callable[[], None]] = None,
) -> Dict[StreamName, str]:
    """
    Run one forwarding pass per source, each on its own worker thread.

    Args:
        sources: Text source per stream name
        output_callback: Optional `fn(text, stream)` for live output
        buffer_size: Forwarder buffer size
        timeout: Seconds to wait for every stream to reach end-of-stream (None waits forever)
        line_buffered: Relay whole lines only
        on_abort: Called before raising, so the producer can be stopped and
                  the remaining passes reach end-of-stream

    Returns:
        Captured, newline-normalized output per stream name

    Raises:
        OverallTimeoutError: If the streams did not finish within `timeout`
        Any error raised by a pass (StreamReadError, sink errors) is re-raised unchanged.
    """
    forwarders = {
        name: relay_forwarder(output_callback, name, buffer_size, line_buffered)
        for name in sources
    }
    pool = ThreadPoolExecutor(max_workers=max(1, len(sources)), thread_name_prefix="relay")
    try:
        futures = [pool.submit(forwarders[name].read, source) for name, source in sources.items()]
        done, not_done = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION)
        failed = [f for f in done if f.exception() is not None]

        if (failed or not_done) and on_abort is not None:
            on_abort()
        if failed:
            raise failed[0].exception()
        if not_done:
            logger.error(f"Streams still open after {timeout} seconds")
            raise OverallTimeoutError(f"Exceeded overall timeout of {timeout} seconds")
    finally:
        pool.shutdown(wait=True)

    return {name: forwarder.get_captured_output() for name, forwarder in forwarders.items()}
