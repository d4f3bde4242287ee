"""Custom exception classes for the security test harness.

None of these derive from ``AssertionError``: a harness failure is test
infrastructure breaking, not the code under test misbehaving, and test
reports must keep the two apart.
"""

from __future__ import annotations

from collections.abc import Sequence


class HarnessError(Exception):
    """Base exception class for all harness errors."""

    pass


class ConfigurationError(HarnessError):
    """Raised when the harness configuration is invalid."""

    pass


class UnsupportedServiceError(ConfigurationError):
    """Raised when no endpoint resolver exists for an identity service."""

    pass


class HarnessStateError(HarnessError):
    """Raised when an operation is not valid in the current lifecycle state."""

    pass


class KeyMaterialError(HarnessError):
    """Raised when key material cannot be loaded or is inconsistent."""

    pass


class TokenGenerationError(HarnessError):
    """Raised when a test token cannot be created."""

    pass


class ResourceStartupError(HarnessError):
    """Raised when the mock server or the application server fails to start."""

    pass


class ResourceTeardownError(HarnessError):
    """Raised when one or more resources failed to stop cleanly.

    Attributes:
        errors: Every failure collected while tearing down, in step order
    """

    def __init__(self, message: str, errors: Sequence[BaseException] = ()) -> None:
        super().__init__(message)
        self.errors: list[BaseException] = list(errors)

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        details = "; ".join(f"{type(err).__name__}: {err}" for err in self.errors)
        return f"{base} ({details})"
