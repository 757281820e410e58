"""Fluent assertions over command results.

    result.should().pass_().have_stdout("Hello World!\\n").not_have_stderr()
"""

from typing import Any


class CommandResultAssertions:
    """Chainable checks on anything with `exit_code`, `stdout` and `stderr`."""

    def __init__(self, result: Any) -> None:
        self._result = result

    def pass_(self) -> "CommandResultAssertions":
        if self._result.exit_code != 0:
            self._fail("Expected command to pass but it did not.")
        return self

    def fail(self) -> "CommandResultAssertions":
        if self._result.exit_code == 0:
            self._fail("Expected command to fail but it did not.")
        return self

    def have_stdout(self, expected: str) -> "CommandResultAssertions":
        if self._result.stdout != expected:
            self._fail(f"Command did not output the expected stdout.\nExpected: {expected!r}")
        return self

    def have_stdout_containing(self, pattern: str) -> "CommandResultAssertions":
        if pattern not in self._result.stdout:
            self._fail(f"The command output did not contain expected result: {pattern!r}")
        return self

    def not_have_stdout(self) -> "CommandResultAssertions":
        if self._result.stdout:
            self._fail("Expected command to not output to stdout but it was not:")
        return self

    def have_stderr(self, expected: str) -> "CommandResultAssertions":
        if self._result.stderr != expected:
            self._fail(f"Command did not output the expected stderr.\nExpected: {expected!r}")
        return self

    def not_have_stderr(self) -> "CommandResultAssertions":
        if self._result.stderr:
            self._fail("Expected command to not output to stderr but it was not:")
        return self

    def _fail(self, message: str) -> None:
        raise AssertionError(f"{message}\n{self._describe()}")

    def _describe(self) -> str:
        r = self._result
        command = getattr(r, "args", None) or getattr(r, "command", None)
        if isinstance(command, (list, tuple)):
            command = " ".join(command)
        return (
            f"Command: {command}\n"
            f"ExitCode: {r.exit_code}\n"
            f"StdOut:\n{r.stdout}\n"
            f"StdErr:\n{r.stderr}"
        )
