"""
Schedule pass entry points.

- ``lambda_handler``: target of a one-minute scheduled event; runs one pass.
- ``main``: runs passes in-process every ``SCHEDULER_INTERVAL_SECONDS`` until
  interrupted, for deployments without a scheduled trigger.
"""
import signal
import threading
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from database.database import get_db_session, get_session_factory
from toggles.scheduler import ScheduleRunner, run_schedule_pass
from utils.config import get_settings
from utils.logging_utils import get_logger
from utils.time_utils import parse_timestamp

logger = get_logger(__name__)


def lambda_handler(event: dict, _context=None, db_session=None) -> dict:
    """
    Runs one schedule pass.

    Args:
        event (dict): Scheduled event; an optional ``now`` ISO timestamp
            overrides the clock
        _context (dict): Lambda execution context (unused)
        db_session (Session, optional): SQLAlchemy session for testing

    Returns:
        dict: Pass summary

    Raises:
        ValueError: ``now`` is not a valid timestamp.
        SQLAlchemyError: The pass failed and was rolled back.
    """
    now = datetime.now(timezone.utc)
    if event and event.get("now"):
        try:
            now = parse_timestamp(event["now"])
        except ValueError:
            logger.error("Invalid clock override in scheduled event: %r", event["now"])
            raise

    session_created = db_session is None
    if session_created:
        db_session = get_db_session()

    try:
        return run_schedule_pass(db_session, now=now).to_dict()
    except SQLAlchemyError as e:
        logger.error("Schedule pass failed: %s", str(e))
        raise
    finally:
        if session_created:
            db_session.close()


def main():
    settings = get_settings()
    runner = ScheduleRunner(get_session_factory(), interval=settings.scheduler_interval_seconds)
    stopped = threading.Event()

    def _shutdown(signum, _frame):
        logger.info("Received signal %s, stopping schedule runner", signum)
        stopped.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    runner.start()
    stopped.wait()
    runner.stop(timeout=settings.scheduler_interval_seconds)


if __name__ == "__main__":
    main()
