"""
Error taxonomy of the toggle registry.

Each error carries the HTTP status it maps to and the message shown to the
caller. Messages never include internal identifiers or exception text.
"""


class ToggleError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class NotFoundError(ToggleError):
    status_code = 404
    message = "Feature not found"


class UnauthorizedError(ToggleError):
    status_code = 401
    message = "Invalid secret"


class BadInputError(ToggleError):
    status_code = 400
    message = "Bad request"


class SecretNotAcceptableError(BadInputError):
    """New secret cannot be used as a URL path segment."""
    status_code = 406
    message = "New secret is not URL parseable, aborting operation"


class WriteConflictError(ToggleError):
    status_code = 409
    message = "Feature already exists"


class StorageUnavailableError(ToggleError):
    status_code = 500
    message = "Storage unavailable"


class RotationFailedError(StorageUnavailableError):
    status_code = 404
    message = "Failed to update secret"
