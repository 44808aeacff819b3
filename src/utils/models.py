"""
Models for API response bodies.

Successful responses carry the resource itself; failed responses are always
a single ``error`` message, never a stack trace or internal identifier.

Example Usage:
    ```
    from utils.models import ErrorResponse

    ErrorResponse(error="Invalid secret").json()
    # '{"error":"Invalid secret"}'
    ```
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """
    Body of every failed request.

    Attributes:
        error (str): Human-readable description of what went wrong.
    """

    error: str

    def json(self, **kwargs):
        """Serialize the error body to a JSON string."""
        return super().model_dump_json(**kwargs)


class MessageResponse(BaseModel):
    """Body of requests that only acknowledge an action."""

    message: str
