"""Lambda handler for CORS preflight (``OPTIONS`` on any path)."""
from utils.logging_utils import get_logger
from utils.response import cors_headers

logger = get_logger(__name__)


def lambda_handler(event, _context=None):
    """
    Answers preflight requests with 204 and the CORS headers every other
    response carries.
    """
    headers = cors_headers(event)
    headers["Access-Control-Max-Age"] = "7200"
    logger.info("Preflight request for %s resolved origin %s",
                event.get("path", "unknown path"), headers["Access-Control-Allow-Origin"])
    return {
        "statusCode": 204,
        "headers": headers,
        "body": "",
    }
