class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(ValidationError):
    """Raised when a write collides with the current state (open shift, duplicate PIN)."""


class AuthenticationError(DomainError):
    """Raised when an identity cannot be established."""


class InvalidPinError(AuthenticationError):
    """Raised when no employee of the tenant carries the submitted PIN."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class PersistenceError(DomainError):
    """Raised when the backing store rejects or fails a read/write."""


class CacheInstallError(DomainError):
    """Raised when a cache worker version cannot populate its static partition."""


class OfflineError(DomainError):
    """Raised when the network is unreachable and no cached fallback applies."""
