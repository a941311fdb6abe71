class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidRangeError(ValidationError):
    """Raised when an excuse date range is reversed or too long."""


class NotFoundError(DomainError):
    """Raised when an excuse, closed day or attendance row does not exist."""


class AuthorizationError(DomainError):
    """Raised when a caller lacks the role or relationship for an action."""
