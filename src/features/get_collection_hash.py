"""
Lambda handler for ``GET /collectionHash/{uuid}``.

Returns the digest of every toggle in the group; reading it needs no secret.
"""
from utils.logging_utils import LogLevel, get_logger, log_structured
from utils import response
from utils.lambda_utils import standard_lambda_handler
from toggles.digest import DIGEST_NOT_FOUND, collection_digest
from toggles.errors import NotFoundError
from toggles.identifiers import is_bare_group_id

logger = get_logger(__name__)


@standard_lambda_handler(path_params=["uuid"])
def lambda_handler(event: dict, _context=None, db_session=None, path_params=None) -> dict:
    group_id = path_params["uuid"]
    if not is_bare_group_id(group_id):
        raise NotFoundError(DIGEST_NOT_FOUND)

    collection_hash = collection_digest(db_session, group_id)
    log_structured(logger, LogLevel.INFO, "Returning collectionHash",
                   method="GET", path=f"/collectionHash/{group_id}", collectionHash=collection_hash)
    return response.api_response(200, data={"collectionHash": collection_hash}, event=event)
