"""Custom exceptions for stream_forwarder package."""


class StreamForwarderError(Exception):
    """Base exception for stream_forwarder errors."""
    pass


class ForwarderConfigurationError(StreamForwarderError):
    """Raised when a forwarder is configured incorrectly or at the wrong time."""
    pass


class InvalidBufferSizeError(ForwarderConfigurationError):
    """Raised when the buffer size is not a positive integer."""
    pass


class StreamReadError(StreamForwarderError):
    """Raised when the source stream fails mid-read."""
    pass


class CommandExecutionFailedError(StreamForwarderError):
    """Raised when a command cannot be started or its output cannot be relayed."""
    pass


class OverallTimeoutError(StreamForwarderError):
    """Raised when command execution exceeds its timeout."""
    pass


class SSHConnectionError(StreamForwarderError):
    """Base exception for SSH connection errors."""
    pass


class KeyFileNotFoundError(SSHConnectionError):
    """Raised when SSH private key file doesn't exist."""
    pass


class AuthenticationFailedError(SSHConnectionError):
    """Raised when SSH authentication fails."""
    pass


class HostUnreachableError(SSHConnectionError):
    """Raised when SSH host is unreachable or connection cannot be established."""
    pass


class UnexpectedError(SSHConnectionError):
    """Raised when an unexpected error occurs during SSH operations."""
    pass
