"""SSH command execution with live output relay through stream forwarders."""

import logging
import socket
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from .assertions import CommandResultAssertions
from .forwarder import DEFAULT_BUFFER_SIZE, validate_buffer_size
from .relay import relay_streams
from .stream import DecodingReader, OutputCallback, select_callback
from .exceptions import (
    SSHConnectionError,
    KeyFileNotFoundError,
    AuthenticationFailedError,
    OverallTimeoutError,
    HostUnreachableError,
    UnexpectedError,
    CommandExecutionFailedError,
    StreamReadError,
)

import paramiko
from paramiko.ssh_exception import (
    AuthenticationException,
    NoValidConnectionsError,
    SSHException,
)

logger = logging.getLogger(__name__)


@dataclass
class ExecResult:
    stdout: str
    stderr: str
    exit_code: int
    command: Optional[str] = None

    def should(self) -> CommandResultAssertions:
        return CommandResultAssertions(self)


class SSHConnection:
    """Handles SSH connections to remote hosts using paramiko.
    This class provides:
    - Command execution with stdout/stderr relayed live and captured
    - Proper connection lifecycle management
    - Context manager support for automatic cleanup
    """

    def __init__(
        self,
        host: str,
        user: str,
        key_path: str,
        port: int = 22,
        timeout: int = 30
    ) -> None:
        """Initialize SSH connection parameters.

        Args:
            host: Remote host IP or hostname
            user: Username for SSH connection
            key_path: Path to private key file
            port: SSH port (default: 22)
            timeout: Connection timeout in seconds (default: 30)

        Raises:
            KeyFileNotFoundError: If key file doesn't exist
        """
        self.host = host
        self.user = user
        self.key_path = Path(key_path)
        self.port = port
        self.timeout = timeout
        self._client: Optional[paramiko.SSHClient] = None

        if not self.key_path.exists():
            raise KeyFileNotFoundError(f"Private key file not found: {key_path}")

    def connect(self) -> bool:
        """Establish SSH connection using private key authentication.
        Returns:
            True if connection successful
        Raises:
            SSHConnectionError: For authentication or connection failures
        """
        if self._client is not None:
            self.disconnect()

        try:
            logger.info(f"Connecting to {self.user}@{self.host}:{self.port}")
            self._client = paramiko.SSHClient()

            try:
                private_key = paramiko.RSAKey.from_private_key_file(str(self.key_path))
            except paramiko.PasswordRequiredException:
                logger.error("Private key requires passphrase (not supported)")
                raise SSHConnectionError("Private key requires passphrase")
            except Exception as e:
                logger.error(f"Failed to load private key: {e}")
                raise SSHConnectionError(f"Invalid private key: {e}")

            self._client.connect(
                hostname=self.host,
                port=self.port,
                username=self.user,
                pkey=private_key,
                timeout=self.timeout,
                look_for_keys=False,  # Only use provided key
                allow_agent=False
            )

            logger.info("SSH connection established successfully")
            return True

        except SSHConnectionError:
            raise
        except AuthenticationException as e:
            logger.error(f"Authentication failed: {e}")
            raise AuthenticationFailedError(f"Authentication failed: {e}") from e
        except NoValidConnectionsError as e:
            logger.error(f"Connection failed: {e}")
            raise HostUnreachableError(f"Cannot connect to {self.host}:{self.port}") from e
        except SSHException as e:
            logger.error(f"SSH error: {e}")
            raise SSHConnectionError(f"SSH error: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected connection error: {e}")
            raise UnexpectedError(f"Connection error: {e}") from e

    def disconnect(self) -> None:
        """Close SSH connection and cleanup resources."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def is_connected(self) -> bool:
        """Check if SSH connection is active.

        Returns:
            True if connected and transport is active, False otherwise
        """
        if self._client is None:
            return False

        transport = self._client.get_transport()
        if transport is None or not transport.is_active():
            return False
        # transport can still look active after the peer went away
        try:
            transport.send_ignore()
            return True
        except (socket.error, EOFError, OSError):
            return False

    def execute(
        self,
        command: str,
        output_callback: Optional[OutputCallback] = None,
        timeout: float = 60.0,
        verbose: bool = True,
        line_buffered: bool = False,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> ExecResult:
        """
        Run a command with real-time streaming.
        Args:
            command: Command to execute remotely.
            output_callback: Optional `fn(text, stream)`; if not provided and `verbose=True`,
                            a default printer is used; if `verbose=False`, output is captured only.
            timeout: Maximum seconds to wait for output on either stream.
            line_buffered: Relay whole lines only instead of raw chunks as they arrive.
            buffer_size: Forwarder buffer size.
        Returns:
            ExecResult(stdout, stderr, exit_code)
        """
        validate_buffer_size(buffer_size)
        if not self.is_connected():
            raise SSHConnectionError("Not connected to remote host")

        transport = self._client.get_transport()
        if transport is None or not transport.is_active():
            raise SSHConnectionError("SSH transport is not active")

        effective_cb, line_buffered = select_callback(output_callback, verbose, line_buffered)

        chan = transport.open_session()
        try:
            chan.exec_command(command)
            chan.settimeout(timeout)

            captured = relay_streams(
                {
                    "stdout": DecodingReader(chan.recv),
                    "stderr": DecodingReader(chan.recv_stderr),
                },
                effective_cb,
                buffer_size,
                line_buffered=line_buffered,
                on_abort=chan.close,
            )
            exit_code = chan.recv_exit_status()

            return ExecResult(
                stdout=captured["stdout"],
                stderr=captured["stderr"],
                exit_code=exit_code,
                command=command,
            )

        except StreamReadError as e:
            if isinstance(e.__cause__, socket.timeout):
                logger.error(f"No output for {timeout} seconds: {command}")
                raise OverallTimeoutError(f"Exceeded timeout of {timeout} seconds waiting for output") from e
            logger.error("Streaming exec failed: %s", e)
            raise CommandExecutionFailedError(f"Streaming command execution failed: {e}") from e
        except (SSHException, OSError) as e:
            logger.error("Streaming exec failed: %s", e)
            raise CommandExecutionFailedError(f"Streaming command execution failed: {e}") from e
        finally:
            chan.close()

    def __enter__(self) -> "SSHConnection":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()

    def __repr__(self) -> str:
        """String representation of connection."""
        status = "connected" if self.is_connected() else "disconnected"
        return f"SSHConnection({self.user}@{self.host}:{self.port}, {status})"
