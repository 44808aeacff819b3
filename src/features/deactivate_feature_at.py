"""
Lambda handler for ``PUT /features/deactivateAt/{key}/{date}/{secret}``.

Only records ``disabled_at``; the scheduler flips the value once the date
has been reached.
"""
from utils.logging_utils import LogLevel, get_logger, log_structured
from utils import response
from utils.lambda_utils import standard_lambda_handler
from toggles.store import ToggleStore

logger = get_logger(__name__)


@standard_lambda_handler(path_params=["key", "date", "secret"])
def lambda_handler(event: dict, _context=None, db_session=None, path_params=None) -> dict:
    key, date = path_params["key"], path_params["date"]
    log_structured(logger, LogLevel.INFO, "Received request to deactivate feature toggle at",
                   method="PUT", path=f"/features/deactivateAt/{key}/{date}", key=key)

    toggle = ToggleStore(db_session).deactivate_at(key, path_params["secret"], date)
    return response.api_response(200, data=toggle.to_dict(), event=event)
