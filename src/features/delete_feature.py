"""
Lambda handler for deleting a feature toggle.

``DELETE /features/{key}/{secret}`` removes only the named toggle; the rest
of its group keeps existing.
"""
from utils.logging_utils import LogLevel, get_logger, log_structured
from utils import response
from utils.lambda_utils import standard_lambda_handler
from utils.models import MessageResponse
from toggles.store import ToggleStore

logger = get_logger(__name__)


@standard_lambda_handler(path_params=["key", "secret"])
def lambda_handler(event: dict, _context=None, db_session=None, path_params=None) -> dict:
    key = path_params["key"]
    log_structured(logger, LogLevel.INFO, "Received request to delete feature toggle",
                   method="DELETE", path=f"/features/{key}", key=key)

    ToggleStore(db_session).delete(key, path_params["secret"])
    return response.api_response(200, data=MessageResponse(message="Feature toggle deleted"), event=event)
