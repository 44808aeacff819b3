"""
Lambda handler for creating a feature toggle.

``POST /features``. A key without a group-id prefix starts a new group and
the generated secret is returned once, in this response only. A key with a
prefix joins an existing group and must present that group's secret.
"""
from utils.logging_utils import LogLevel, get_logger, log_structured
from utils import response
from utils.lambda_utils import standard_lambda_handler
from features.model import FeatureToggleCreate
from toggles.store import ToggleStore

logger = get_logger(__name__)


@standard_lambda_handler(body_model=FeatureToggleCreate)
def lambda_handler(event: dict, _context=None, db_session=None, body: FeatureToggleCreate = None) -> dict:
    """
    Handles creating a feature toggle.

    Args:
        event (dict): API Gateway event with the JSON body
        _context (dict): Lambda execution context (unused)
        db_session (Session, optional): SQLAlchemy session for testing
        body (FeatureToggleCreate): Validated request body (provided by decorator)

    Returns:
        dict: 201 with the created toggle, plus ``secret`` for a new group
    """
    log_structured(logger, LogLevel.INFO, "Received request to create feature toggle",
                   method="POST", path="/features", key=body.key)

    toggle, fresh_secret = ToggleStore(db_session).create(
        key=body.key,
        value=body.value,
        secret=body.secret,
        active_at=body.active_at,
        disabled_at=body.disabled_at,
        tags=body.tags,
    )

    data = toggle.to_dict()
    if fresh_secret is not None:
        data["secret"] = fresh_secret
    return response.api_response(201, data=data, event=event)
