"""
Response Utility to Standardize API Responses

Every Lambda handler returns through ``api_response`` so that all responses
share the same shape:

- a JSON body: the resource on success, ``{"error": "..."}`` on failure
- ``Content-Type`` and CORS headers resolved from the caller's origin

Usage Example:
    ```
    from utils.response import api_response

    api_response(404, error="Feature not found")
    # {
    #     "statusCode": 404,
    #     "headers": {...},
    #     "body": '{"error":"Feature not found"}'
    # }
    ```
"""

import json
import os
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from .logging_utils import get_logger
from .models import ErrorResponse

logger = get_logger(__name__)

# Predefined status code mappings
STATUS_MESSAGES: Dict[int, str] = {
    200: "OK",
    201: "Created",
    204: "No Content",
    400: "Bad Request",
    401: "Unauthorized",
    404: "Not Found",
    406: "Not Acceptable",
    409: "Conflict",
    500: "Internal Server Error",
}

ALLOWED_METHODS = "GET,OPTIONS,POST,PUT,DELETE"
ALLOWED_HEADERS = (
    "Content-Type,Content-Length,Accept-Encoding,X-CSRF-Token,Authorization,"
    "accept,origin,Cache-Control,X-Requested-With"
)


def allowed_origins() -> List[str]:
    """Origins allowed to call the API with credentials."""
    allowed: List[str] = []
    configured = os.getenv("FRONTEND_ORIGIN") or ""
    allowed.extend(o.strip() for o in configured.split(",") if o.strip())
    if os.getenv("ENVIRONMENT", "dev").lower() != "prod":
        for port in ["3000", "4200", "5173", "8000", "8080", ""]:
            suffix = f":{port}" if port else ""
            allowed.append(f"http://localhost{suffix}")
            allowed.append(f"http://127.0.0.1{suffix}")
    return allowed


def cors_headers(event: Optional[Dict[str, Any]] = None, origin: Optional[str] = None) -> Dict[str, str]:
    """
    Resolve the CORS headers for a request.

    The caller's origin is echoed back when it is allowed; otherwise the
    first configured frontend origin (or ``*``) is used.
    """
    req_headers: Dict[str, Any] = {}
    if event and isinstance(event, dict):
        req_headers = event.get("headers", {}) or {}
    request_origin = origin or req_headers.get("origin") or req_headers.get("Origin")

    allowed = allowed_origins()
    configured = [o for o in (os.getenv("FRONTEND_ORIGIN") or "").split(",") if o.strip()]
    access_control_origin = configured[0].strip() if configured else "*"
    if request_origin and request_origin in allowed:
        access_control_origin = request_origin

    return {
        "Access-Control-Allow-Origin": access_control_origin,
        "Access-Control-Allow-Credentials": "true" if access_control_origin != "*" else "false",
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
    }


def _serialize(data: Union[BaseModel, Dict[str, Any], List[Any], None]) -> str:
    if isinstance(data, BaseModel):
        return data.model_dump_json(by_alias=True, exclude_none=False)
    return json.dumps(data if data is not None else {}, default=str)


def api_response(
    status_code: int,
    data: Union[BaseModel, Dict[str, Any], List[Any], None] = None,
    error: Optional[str] = None,
    event: Optional[Dict[str, Any]] = None,
    origin: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Generates a standardized API Gateway proxy response.

    Args:
        status_code (int): HTTP status code.
        data: Payload for successful responses (dict, list or pydantic model).
        error (Optional[str]): Message for failed responses. When given the
            body is ``{"error": error}`` and ``data`` is ignored.
        event (Optional[dict]): Incoming event, used to resolve CORS origin.
        origin (Optional[str]): Explicit caller origin, overrides the event.

    Returns:
        Dict[str, Any]: ``statusCode``, ``headers`` and ``body``.
    """
    if status_code not in STATUS_MESSAGES:
        raise ValueError(f"Invalid status code: {status_code}")

    if error is not None or status_code >= 400:
        body = ErrorResponse(error=error or STATUS_MESSAGES[status_code]).json()
    else:
        body = _serialize(data)

    headers = {"Content-Type": "application/json", **cors_headers(event, origin)}
    logger.debug("Returning response: %s %s", status_code, body)
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": body,
    }
