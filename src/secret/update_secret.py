"""
Lambda handler for rotating a group's secret.

``PUT /secret/update/{uuid}/{oldsecret}/{newsecret}`` replaces the secret
on every toggle of the group in one atomic update. The new secret must be
usable as a URL path segment without escaping.
"""
from utils.logging_utils import LogLevel, get_logger, log_structured
from utils import response
from utils.lambda_utils import standard_lambda_handler
from toggles.secret_authority import SecretAuthority

logger = get_logger(__name__)


@standard_lambda_handler(path_params=["uuid", "oldsecret", "newsecret"])
def lambda_handler(event: dict, _context=None, db_session=None, path_params=None) -> dict:
    """
    Handles rotating a group secret.

    Returns:
        dict: 200 ``{"key": uuid}``; 401 when the old secret is wrong; 406
        when the new secret is not URL safe; 404 when the group is unknown
        or the update failed
    """
    group_id = path_params["uuid"]
    log_structured(logger, LogLevel.INFO, "Received request to update secret",
                   method="PUT", path=f"/secret/update/{group_id}", uuid=group_id)

    SecretAuthority(db_session).rotate(group_id, path_params["oldsecret"], path_params["newsecret"])
    return response.api_response(200, data={"key": group_id}, event=event)
