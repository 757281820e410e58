"""Example usage of stream_forwarder package."""

import io
import logging
import sys

from stream_forwarder import Command, StreamForwarder


def main():
    """Demonstrate forwarding a stream and relaying a command."""
    logging.basicConfig(level=logging.INFO)
    print("Stream Forwarder Example")

    # Forward an in-memory stream: raw chunks and lines both go to stdout
    forwarder = StreamForwarder(buffer_size=4)
    forwarder.forward_to(write=sys.stdout.write, write_line=sys.stdout.write)
    forwarder.capture()
    forwarder.read(io.StringIO("first line\r\nsecond line\nunterminated"))
    print()
    print(f"Captured: {forwarder.get_captured_output()!r}")

    # Relay a local process, stdout and stderr tagged by the default printer
    print("Running a command:")
    result = Command([sys.executable, "-c", "print('Hello World!')"]).execute()
    print(f"Exit code: {result.exit_code}")
    print(f"Stdout: {result.stdout!r}")
    if result.stderr:
        print(f"Stderr: {result.stderr}")


if __name__ == "__main__":
    main()
