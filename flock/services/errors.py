class ServiceError(Exception):
    """Base service exception."""


class NotFoundError(ServiceError):
    """Raised when a referenced user or post does not exist."""


class InvalidInputError(ServiceError):
    """Raised for malformed or out-of-range input, e.g. oversized post content."""


class InvalidCredentialsError(ServiceError):
    """Raised when a password does not match."""


class DuplicateAccountError(ServiceError):
    """Raised when the email is already registered."""
