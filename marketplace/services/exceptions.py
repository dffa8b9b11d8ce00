from typing import Dict, Optional


class MarketplaceError(Exception):
    """Base class for errors that map to an API response."""
    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MarketplaceError):
    """Raised when input fails validation. Carries every violated field."""
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message)


class InvalidIdError(MarketplaceError):
    """Raised when an identifier is not a well-formed reference."""
    status_code = 400
    default_message = "Invalid identifier"


class DuplicateEmailError(MarketplaceError):
    status_code = 400
    default_message = "User already exists"


class InvalidTransitionError(MarketplaceError):
    """Raised when a moderation action is not allowed from the current status."""
    status_code = 400
    default_message = "Invalid status transition"


class UnauthenticatedError(MarketplaceError):
    status_code = 401
    default_message = "Not authorized"


class InvalidAdminCodeError(MarketplaceError):
    status_code = 401
    default_message = "Invalid admin registration code"


class ForbiddenError(MarketplaceError):
    status_code = 403
    default_message = "Not authorized to access this resource"


class NotFoundError(MarketplaceError):
    status_code = 404
    default_message = "Resource not found"
