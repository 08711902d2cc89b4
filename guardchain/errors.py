"""Custom exception classes for Guardchain.

Build-time errors derive from :class:`GuardchainError` and are raised
synchronously from :meth:`HttpSecurityBuilder.build`.  Request-time errors
(:class:`AuthenticationError`, :class:`AccessDeniedError`) are raised by
filters and providers and translated into responses by the exception
translation filter.
"""

from typing import Any, Iterable, Optional


class GuardchainError(Exception):
    """Base class for all build-time errors in Guardchain."""

    pass


class ConfigurationError(GuardchainError):
    """Raised when loading or validating a declarative chain config fails."""

    pass


def _kind_name(kind: Any) -> str:
    return getattr(kind, "__name__", repr(kind))


class FilterOrderError(GuardchainError):
    """Raised when a before/after relation is anchored to an unknown filter kind."""

    def __init__(self, kind: Any, anchor: Any, relation: str = "relative to"):
        self.kind = kind
        self.anchor = anchor
        message = (
            f"Cannot register filter kind '{_kind_name(kind)}' {relation} "
            f"'{_kind_name(anchor)}': the anchor kind is not registered in "
            "the filter ordering table."
        )
        super().__init__(message)


class AmbiguousFilterOrderError(GuardchainError):
    """Raised when before/after relations cannot be satisfied by one total order."""

    def __init__(self, kinds: Iterable[Any], reason: str):
        self.kinds = tuple(kinds)
        names = ", ".join(f"'{_kind_name(k)}'" for k in self.kinds)
        super().__init__(f"Conflicting filter order for {names}: {reason}")


class BuilderStateError(GuardchainError):
    """Raised when the builder is used out of its lifecycle order."""

    pass


class AlreadyBuiltError(BuilderStateError):
    """Raised on a second ``build()`` or on mutation after the build."""

    def __init__(self, operation: str = "build", state: str = "built"):
        self.operation = operation
        self.state = state
        if state == "failed":
            detail = "a previous build of this builder failed"
        elif state == "built":
            detail = "this builder has already been built"
        else:
            detail = f"this builder is already {state}"
        super().__init__(f"Cannot {operation}: {detail}. Create a new builder for another chain.")


class MissingCollaboratorError(GuardchainError):
    """Raised when a required shared object was never set and has no default."""

    def __init__(self, required_type: Any, consumer: Optional[str] = None):
        self.required_type = required_type
        message = f"Required collaborator absent: no shared object of type '{_kind_name(required_type)}'"
        if consumer:
            message += f" (required by {consumer})"
        super().__init__(message)


# ── Request-time errors ──────────────────────────────────────────────────


class AuthenticationError(Exception):
    """Raised when authentication fails (maps to HTTP 401)."""


class BadCredentialsError(AuthenticationError):
    """Raised when the presented credentials do not match."""


class DisabledAccountError(AuthenticationError):
    """Raised when the account exists but is disabled."""


class ProviderNotFoundError(AuthenticationError):
    """Raised when no provider supports the presented authentication token."""


class AccessDeniedError(Exception):
    """Raised when authorization fails (maps to HTTP 403)."""
