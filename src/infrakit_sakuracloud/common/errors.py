"""
Error types raised by the instance plugin.

DecodeError, ValidationError and RemoteOperationError are reported back to the
caller. CapabilityError marks a strategy that cannot be built at all; it is not
a PluginError.
"""

from typing import Iterable, List


class PluginError(Exception):
    """Base class for errors reported to the host orchestrator."""


class DecodeError(PluginError):
    """Configuration bytes or an instance ID could not be decoded."""


class FieldError(ValueError):
    """A single field rule violation."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ValidationError(PluginError):
    """One or more field rule violations, reported together."""

    def __init__(self, errors: Iterable[FieldError]) -> None:
        self.errors: List[FieldError] = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]


class RemoteOperationError(PluginError):
    """A remote (or local file) operation failed while serving a request."""

    def __init__(self, operation: str, cause: BaseException | str) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} is failed: {cause}")


class CapabilityError(RuntimeError):
    """A server strategy lacks a capability the build cannot proceed without."""


class CloudAPIError(Exception):
    """Raised by CloudClient implementations when an API call fails."""


class ResourceNotFoundError(CloudAPIError):
    """The requested remote resource does not exist (or no longer exists)."""


class PowerStateTimeoutError(CloudAPIError):
    """A server did not reach the requested power state in time."""
