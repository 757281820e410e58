"""Local command execution with live stdout/stderr relay."""

import logging
import os
import shlex
import signal
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

from .assertions import CommandResultAssertions
from .forwarder import DEFAULT_BUFFER_SIZE, validate_buffer_size
from .relay import relay_streams
from .stream import DecodingReader, OutputCallback, select_callback
from .exceptions import (
    CommandExecutionFailedError,
    OverallTimeoutError,
    StreamReadError,
)

logger = logging.getLogger(__name__)

# A POSIX child leads its own process group so its descendants can be killed with it
NEW_PROCESS_GROUP = os.name == "posix"


def kill_process_tree(proc: subprocess.Popen) -> None:
    """Kill the process and anything it spawned that still holds its pipes."""
    if NEW_PROCESS_GROUP:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        proc.kill()


@dataclass
class CommandResult:
    args: List[str]
    exit_code: int
    stdout: str
    stderr: str

    def should(self) -> CommandResultAssertions:
        return CommandResultAssertions(self)


class Command:
    """Runs a local process and relays its output through stream forwarders.

    Each of stdout and stderr gets its own forwarder running on its own
    thread; both capture, so the result always holds the full output with
    line endings normalized.
    """

    def __init__(
        self,
        args: Union[str, Sequence[str]],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        """
        Args:
            args: Executable and leading arguments
            cwd: Working directory (default: current directory)
            env: Variables added to the current environment
            buffer_size: Forwarder buffer size (default: 4096)

        Raises:
            InvalidBufferSizeError: If buffer_size is not a positive integer
        """
        self.args = [args] if isinstance(args, str) else list(args)
        if not self.args:
            raise ValueError("Command requires at least an executable")
        self.cwd = cwd
        self.env = env
        self.buffer_size = validate_buffer_size(buffer_size)

    def execute(
        self,
        *extra_args: str,
        output_callback: Optional[OutputCallback] = None,
        verbose: bool = True,
        line_buffered: bool = False,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """
        Run the command, relaying output live.
        Args:
            extra_args: Arguments appended to the command line
            output_callback: Optional `fn(text, stream)`; if not provided and `verbose=True`,
                            a default printer is used; if `verbose=False`, output is only captured.
            line_buffered: Relay whole lines only instead of raw chunks as they arrive
            timeout: Maximum seconds for the process to close its output (None waits forever)
        Returns:
            CommandResult(args, exit_code, stdout, stderr)
        """
        effective_cb, line_buffered = select_callback(output_callback, verbose, line_buffered)
        return self._run(list(extra_args), effective_cb, line_buffered, timeout)

    def execute_with_captured_output(self, *extra_args: str, timeout: Optional[float] = None) -> CommandResult:
        """Run the command, capturing output without relaying it."""
        return self._run(list(extra_args), None, False, timeout)

    def _run(
        self,
        extra_args: List[str],
        cb: Optional[OutputCallback],
        line_buffered: bool,
        timeout: Optional[float],
    ) -> CommandResult:
        argv = self.args + extra_args
        env = {**os.environ, **self.env} if self.env is not None else None
        logger.info(f"Executing: {shlex.join(argv)}")

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self.cwd,
                env=env,
                start_new_session=NEW_PROCESS_GROUP,
            )
        except OSError as e:
            logger.error(f"Failed to start {argv[0]}: {e}")
            raise CommandExecutionFailedError(f"Failed to start {argv[0]}: {e}") from e

        with proc:
            try:
                captured = relay_streams(
                    {
                        "stdout": DecodingReader(proc.stdout.read1),
                        "stderr": DecodingReader(proc.stderr.read1),
                    },
                    cb,
                    self.buffer_size,
                    timeout=timeout,
                    line_buffered=line_buffered,
                    on_abort=lambda: kill_process_tree(proc),
                )
            except OverallTimeoutError:
                logger.error(f"Command timed out after {timeout} seconds: {argv[0]}")
                raise
            except StreamReadError as e:
                logger.error("Relaying output failed: %s", e)
                raise CommandExecutionFailedError(f"Failed to relay output of {argv[0]}: {e}") from e
            exit_code = proc.wait()

        logger.info(f"{argv[0]} exited with code {exit_code}")
        return CommandResult(args=argv, exit_code=exit_code, stdout=captured["stdout"], stderr=captured["stderr"])

    def __repr__(self) -> str:
        return f"Command({shlex.join(self.args)})"
