"""Line-buffering stream forwarder and output-relaying command runners."""

from .forwarder import StreamForwarder, DEFAULT_BUFFER_SIZE
from .stream import SinkSet, DecodingReader, default_printer
from .relay import relay_streams
from .command import Command, CommandResult
from .connection import SSHConnection, ExecResult
from .assertions import CommandResultAssertions
from .exceptions import (
    StreamForwarderError,
    ForwarderConfigurationError,
    InvalidBufferSizeError,
    StreamReadError,
    CommandExecutionFailedError,
    OverallTimeoutError,
    SSHConnectionError,
    KeyFileNotFoundError,
    AuthenticationFailedError,
    HostUnreachableError,
    UnexpectedError,
)

__all__ = [
    "StreamForwarder",
    "DEFAULT_BUFFER_SIZE",
    "SinkSet",
    "DecodingReader",
    "default_printer",
    "relay_streams",
    "Command",
    "CommandResult",
    "SSHConnection",
    "ExecResult",
    "CommandResultAssertions",
    "StreamForwarderError",
    "ForwarderConfigurationError",
    "InvalidBufferSizeError",
    "StreamReadError",
    "CommandExecutionFailedError",
    "OverallTimeoutError",
    "SSHConnectionError",
    "KeyFileNotFoundError",
    "AuthenticationFailedError",
    "HostUnreachableError",
    "UnexpectedError",
]
__version__ = "0.1.0"
