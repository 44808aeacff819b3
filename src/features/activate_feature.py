"""Lambda handler for ``PUT /features/activate/{key}/{secret}``."""
from utils.logging_utils import LogLevel, get_logger, log_structured
from utils import response
from utils.lambda_utils import standard_lambda_handler
from toggles.store import ToggleStore

logger = get_logger(__name__)


@standard_lambda_handler(path_params=["key", "secret"])
def lambda_handler(event: dict, _context=None, db_session=None, path_params=None) -> dict:
    """
    Sets a toggle's value to "true".

    Returns:
        dict: 200 with the updated toggle; 401 on a wrong secret; 404 when
        the group or toggle does not exist
    """
    key = path_params["key"]
    log_structured(logger, LogLevel.INFO, "Received request to activate feature toggle",
                   method="PUT", path=f"/features/activate/{key}", key=key)

    toggle = ToggleStore(db_session).activate(key, path_params["secret"])
    return response.api_response(200, data=toggle.to_dict(), event=event)
