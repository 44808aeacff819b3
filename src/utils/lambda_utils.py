"""
Lambda Handler Utilities

Standardized pattern for API Gateway Lambda handlers:
- Request/response logging
- Database session management (a session can be injected for tests)
- Path parameter extraction and request body validation
- Mapping of toggle errors and database errors onto HTTP responses

Handlers only declare the parameters they use; the decorator passes the
matching subset of ``event``, ``context``, ``db_session``, ``body`` and
``path_params``.
"""

import inspect
import json
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union
from urllib.parse import unquote

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from database.database import get_db_session
from toggles.errors import ToggleError
from utils import response
from utils.logging_utils import LogLevel, get_logger, log_structured

logger = get_logger(__name__)

HandlerFunction = Callable[..., Dict[str, Any]]


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request body")


def _filter_params(handler_func: HandlerFunction, handler_params: Dict[str, Any]) -> Dict[str, Any]:
    sig = inspect.signature(handler_func)
    filtered_params = {}
    for param_name, param in sig.parameters.items():
        # _event/_context let handlers mark these as unused
        if param_name in handler_params:
            filtered_params[param_name] = handler_params[param_name]
        elif param_name == '_event':
            filtered_params[param_name] = handler_params['event']
        elif param_name == '_context':
            filtered_params[param_name] = handler_params['context']
        elif param.kind == inspect.Parameter.VAR_KEYWORD:
            for k, v in handler_params.items():
                if k not in filtered_params:
                    filtered_params[k] = v
    return filtered_params


def standard_lambda_handler(
    path_params: Optional[List[str]] = None,
    body_model: Optional[Type[BaseModel]] = None,
) -> Callable[[HandlerFunction], HandlerFunction]:
    """
    Decorator for standardizing Lambda handlers with common error handling patterns.

    Args:
        path_params: Path parameters that must be present (URL-decoded before use)
        body_model: Pydantic model the JSON body is validated against

    Returns:
        Decorated handler function with standardized error handling
    """
    def decorator(handler_func: HandlerFunction) -> HandlerFunction:
        @wraps(handler_func)
        def wrapper(event: Dict[str, Any], context: Any = None, **kwargs) -> Dict[str, Any]:
            function_name = handler_func.__module__
            http_method = event.get('httpMethod', 'UNKNOWN')
            path = event.get('path', 'UNKNOWN')
            logger.info(f"Request started: {http_method} {path} -> {function_name}")

            db_session = kwargs.pop('db_session', None)
            session_created = False

            try:
                extracted = {}
                for param_name in path_params or []:
                    success, result = extract_path_param(event, param_name)
                    if not success:
                        return result
                    extracted[param_name] = result

                body = None
                if body_model is not None:
                    try:
                        raw = json.loads(event.get("body") or "")
                        body = body_model.model_validate(raw)
                    except json.JSONDecodeError:
                        logger.warning(f"{function_name}: Invalid JSON in request body")
                        return response.api_response(400, error="Invalid JSON in request body", event=event)
                    except ValidationError as e:
                        message = _describe_validation_error(e)
                        logger.warning(f"{function_name}: Invalid request body: {message}")
                        return response.api_response(400, error=message, event=event)

                if db_session is None:
                    db_session = get_db_session()
                    session_created = True

                handler_params = {
                    'event': event,
                    'context': context,
                    'db_session': db_session,
                    'body': body,
                    'path_params': extracted,
                }
                handler_params.update(kwargs)

                result = handler_func(**_filter_params(handler_func, handler_params))

                status_code = result.get("statusCode", 0)
                logger.info(f"Request completed: {http_method} {path} -> {function_name} (Status: {status_code})")
                return result

            except ToggleError as e:
                log_structured(logger, LogLevel.WARNING, "Request rejected", method=http_method,
                               path=path, status=e.status_code, error=e.message)
                return response.api_response(e.status_code, error=e.message, event=event)

            except SQLAlchemyError as db_error:
                logger.error(f"{function_name}: Database error: {str(db_error)}")
                return response.api_response(500, error="Database error", event=event)

            except Exception as e:
                logger.exception(f"{function_name}: Unexpected error in Lambda handler: {str(e)}")
                return response.api_response(500, error="Internal server error", event=event)

            finally:
                if session_created and db_session is not None:
                    db_session.close()

        return wrapper
    return decorator


def extract_path_param(event: Dict[str, Any], param_name: str) -> Tuple[bool, Union[str, Dict[str, Any]]]:
    """
    Extract and URL-decode a path parameter from the event.

    An empty value is valid (e.g. an empty secret); only a missing one is not.

    Args:
        event: API Gateway event
        param_name: Name of the path parameter

    Returns:
        Tuple containing success flag and either the parameter value or an error response
    """
    path_params = event.get("pathParameters") or {}
    param_value = path_params.get(param_name)

    if param_value is None:
        logger.warning(f"Missing required path parameter: {param_name}")
        return False, response.api_response(
            400,
            error=f"Missing required path parameter: {param_name}",
            event=event,
        )

    return True, unquote(param_value)


def extract_query_list(event: Dict[str, Any], param_name: str) -> List[str]:
    """Comma-separated query parameter as a list of non-blank values."""
    query = event.get("queryStringParameters") or {}
    raw = query.get(param_name) or ""
    return [part.strip() for part in raw.split(",") if part.strip()]
