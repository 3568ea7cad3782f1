"""Domain exceptions for business rule violations."""


class DomainError(Exception):
    """Base exception for domain layer."""


class ValidationError(DomainError):
    """Raised when input validation fails."""


class UnauthenticatedError(DomainError):
    """Raised when credentials do not match an account."""


class ConflictError(DomainError):
    """Raised when a write collides with existing state (e.g. a duplicate email)."""


class WriteConflictError(ConflictError):
    """Raised when the store detects a concurrent write with an identical key.

    Post ids are unique by construction, so this signals a logic error and must
    not be retried blindly.
    """


class InfrastructureError(DomainError):
    """Raised when infrastructure operations fail (DB, network, etc.)."""


class StorageUnavailableError(InfrastructureError):
    """Raised on a transient blob storage fault. Safe to retry."""


class QuotaExceededError(DomainError):
    """Raised when the owner or system storage budget is exhausted."""
