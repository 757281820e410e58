"""Tests for sink sets, callbacks and the decoding reader."""

import pytest

from stream_forwarder.stream import (
    DecodingReader,
    SinkSet,
    default_printer,
    select_callback,
    stream_callbacks,
)


def test_empty_sink_set():
    sinks = SinkSet()
    assert not sinks.has_raw_sink()
    assert not sinks.has_line_sink()
    assert not sinks.capturing()


def test_full_sink_set():
    sinks = SinkSet(write=print, write_line=print, capture=True)
    assert sinks.has_raw_sink()
    assert sinks.has_line_sink()
    assert sinks.capturing()


def test_default_printer(capsys):
    default_printer("hello\n", "stderr")
    assert capsys.readouterr().out == "[stderr] hello\n"


def test_stream_callbacks_without_callback():
    assert stream_callbacks(None, "stdout") == (None, None)


@pytest.mark.parametrize("line_buffered", [False, True])
def test_stream_callbacks_tag_stream(line_buffered):
    received = []
    write, write_line = stream_callbacks(lambda text, which: received.append((text, which)), "stderr", line_buffered)

    write_line("line\n")
    if line_buffered:
        assert write is None
    else:
        write("chunk")

    expected = [("line\n", "stderr")] if line_buffered else [("line\n", "stderr"), ("chunk", "stderr")]
    assert received == expected


@pytest.mark.parametrize("line_buffered", [False, True])
def test_default_printer_is_always_line_buffered(line_buffered):
    assert select_callback(None, True, line_buffered) == (default_printer, True)


@pytest.mark.parametrize("line_buffered", [False, True])
def test_given_callback_keeps_buffering_choice(line_buffered):
    def callback(text, stream):
        pass

    assert select_callback(callback, True, line_buffered) == (callback, line_buffered)
    assert select_callback(callback, False, line_buffered) == (callback, line_buffered)


def test_quiet_selects_no_callback():
    assert select_callback(None, False, False) == (None, False)


class TestDecodingReader:

    def test_reads_until_end_of_stream(self, recv_from):
        reader = DecodingReader(recv_from([b"abc", b"def"]))
        assert reader.read(10) == "abc"
        assert reader.read(10) == "def"
        assert reader.read(10) == ""

    def test_multibyte_character_split_across_reads(self, recv_from):
        reader = DecodingReader(recv_from([b"\xc3", b"\xa9x"]))
        assert reader.read(10) == "éx"
        assert reader.read(10) == ""

    def test_invalid_bytes_are_replaced(self, recv_from):
        reader = DecodingReader(recv_from([b"a\xffb"]))
        assert reader.read(10) == "a\ufffdb"

    def test_truncated_sequence_at_end_of_stream(self, recv_from):
        reader = DecodingReader(recv_from([b"\xc3"]))
        assert reader.read(10) == "\ufffd"
        assert reader.read(10) == ""

    def test_requested_size_is_passed_through(self):
        sizes = []

        def read_bytes(size):
            sizes.append(size)
            return b""

        reader = DecodingReader(read_bytes)
        reader.read(16)
        reader.read()
        assert sizes == [16, 4096]
