"""Structured exception hierarchy for the acceptance harness.

Every error the harness raises derives from HarnessError, which carries an
error code, a severity and a context dictionary alongside the human-readable
message. The error codes let tests assert on the *category* of a failure
rather than on message text:

- **POOL_CONSTRUCTION_ERROR**: the connection pool could not be built
- **POOL_CONNECT**: the pool was built but the liveness probe failed, i.e.
  the database dependency is absent or not ready
- **CONTAINER_COMMAND_ERROR**: a container runtime command exited non-zero
- **CONFIGURATION_ERROR**: harness configuration is unusable
- **SCOPE_CLOSED**: a cleanup was registered on a scope that already ran

The original cause is always preserved through exception chaining.
"""

from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for harness failures."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the harness."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Harness configuration is invalid."""

    POOL_CONSTRUCTION_ERROR = "POOL_CONSTRUCTION_ERROR"
    """The connection pool could not be constructed."""

    POOL_CONNECT = "POOL_CONNECT"
    """The connection pool did not connect to the database."""

    CONTAINER_COMMAND_ERROR = "CONTAINER_COMMAND_ERROR"
    """A container runtime command failed."""

    SCOPE_CLOSED = "SCOPE_CLOSED"
    """The cleanup scope has already been closed."""


class Severity(Enum):
    """Severity levels used to choose how loudly a failure is reported."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class HarnessError(Exception):
    """Base exception class for all harness exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def should_alert(self) -> bool:
        """Whether the failure points at a broken environment.

        Returns:
            bool: True for HIGH or CRITICAL severity.
        """
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        """Return a string representation of the exception.

        Returns:
            str: A formatted string containing the error code and message
        """
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception.

        Returns:
            str: A string showing the class name, error code, message, severity,
                and context
        """
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ConfigurationError(HarnessError):
    """Exception raised when harness configuration cannot be used.

    Args:
        message: Description of the configuration problem
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.CONFIGURATION_ERROR, message, Severity.CRITICAL, context, cause
        )


class PoolConstructionError(HarnessError):
    """Exception raised when a connection pool cannot be constructed.

    Construction never touches the network, so this points at malformed
    connection parameters rather than at the database itself.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.POOL_CONSTRUCTION_ERROR, message, Severity.MEDIUM, context, cause
        )


class PoolConnectError(HarnessError):
    """Exception raised when the pool did not connect to the database.

    This is the "dependency not ready" category: the liveness probe timed out,
    was refused, or failed authentication. Tests assert on this class to tell
    a missing database apart from a construction problem.

    Args:
        message: Description of the probe failure
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str = "pool did not connect",
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(ErrorCode.POOL_CONNECT, message, Severity.HIGH, context, cause)


class ContainerCommandError(HarnessError):
    """Exception raised when a container runtime command fails.

    Args:
        command: The full argv that was executed
        returncode: Exit status of the command, None if it never started
        output: Combined stdout and stderr of the command
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        command: list[str],
        returncode: int | None,
        output: bytes = b"",
        cause: BaseException | None = None,
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.output = output
        message = f"command {' '.join(command)!r} exited with status {returncode}"
        if returncode is None:
            message = f"command {' '.join(command)!r} could not be started"
        super().__init__(
            ErrorCode.CONTAINER_COMMAND_ERROR,
            message,
            Severity.HIGH,
            {"command": command, "returncode": returncode},
            cause,
        )

    @property
    def output_text(self) -> str:
        """Decoded command output, suitable for failure messages."""
        return self.output.decode("utf-8", errors="replace")


class ScopeClosedError(HarnessError):
    """Exception raised when registering a cleanup on a closed scope."""

    def __init__(self, message: str = "cleanup scope is already closed") -> None:
        super().__init__(ErrorCode.SCOPE_CLOSED, message, Severity.MEDIUM)
