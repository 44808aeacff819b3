"""
Lambda handler for reading feature toggles.

``GET /features/{key}`` returns the toggle whose key matches exactly. When
none does and the key is a bare group id, every toggle of that group is
returned, optionally filtered with ``?tags=a,b`` (all tags required).
Secrets are never included.
"""
from utils.logging_utils import LogLevel, get_logger, log_structured
from utils import response
from utils.lambda_utils import extract_query_list, standard_lambda_handler
from toggles.store import ToggleStore

logger = get_logger(__name__)


@standard_lambda_handler(path_params=["key"])
def lambda_handler(event: dict, _context=None, db_session=None, path_params=None) -> dict:
    key = path_params["key"]
    tags = extract_query_list(event, "tags")

    result = ToggleStore(db_session).read(key, tags=tags)

    if isinstance(result, list):
        log_structured(logger, LogLevel.INFO, "Returning feature toggles without secrets",
                       method="GET", path=f"/features/{key}", key=key, length=len(result))
        return response.api_response(200, data={"toggles": [t.to_dict() for t in result]}, event=event)

    log_structured(logger, LogLevel.INFO, "Returning feature toggle value without secret",
                   method="GET", path=f"/features/{key}", key=key, value=result.value)
    return response.api_response(200, data=result.to_dict(), event=event)
