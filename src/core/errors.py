"""Domain error taxonomy raised by portal services.

These are plain exceptions rather than DRF ``APIException`` subclasses so that
service functions stay usable outside the HTTP layer. ``custom_exception_handler``
maps each kind onto a status code and the standard error envelope.
"""


class PortalError(Exception):
    """Base class for errors reported back to the caller."""

    default_message = "Request could not be completed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PortalError):
    """Malformed input: empty rejection reason, bad category, forbidden role."""

    default_message = "Invalid input."


class NotFoundError(PortalError):
    """Referenced entity does not exist."""

    default_message = "Not found."


class AuthorizationError(PortalError):
    """Caller may not perform the operation on this resource in its state.

    When ``conceal`` is set the denial must be indistinguishable from a
    ``NotFoundError`` so that hidden articles do not leak their existence.
    """

    default_message = "You do not have permission to perform this action on this resource."

    def __init__(self, message: str | None = None, conceal: bool = False):
        self.conceal = conceal
        super().__init__(message)


class ConflictError(PortalError):
    """Uniqueness or referential conflict (duplicate email or slug, category in use)."""

    default_message = "Conflict with existing data."


__all__ = [
    "PortalError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "ConflictError",
]
