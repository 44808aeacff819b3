"""
Scheduler

Promotes toggles whose scheduled time has arrived. One pass applies two
rules, in this order, inside a single transaction:

1. ``active_at`` set and ``active_at <= cutoff``   -> value = "true"
2. ``disabled_at`` set and ``disabled_at <= cutoff`` -> value = "false"

The cutoff is midnight UTC of the current day for both rules. A timestamp of
exactly midnight fires that day; any later time fires on the first pass of
the following day. When both rules match a toggle the deactivate rule
runs last and wins. Schedule timestamps are never cleared, so repeated
passes re-apply the same values.

``ScheduleRunner`` runs passes on a fixed interval in a background thread
and never lets two passes overlap.
"""
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.feature_toggle import FeatureToggle
from utils.logging_utils import LogLevel, get_logger, log_structured
from utils.time_utils import start_of_day
from utils.vocab_enums import ToggleValue

logger = get_logger(__name__)


@dataclass
class PassResult:
    cutoff: datetime
    activated: int
    deactivated: int

    def to_dict(self):
        return {
            "cutoff": self.cutoff.isoformat(),
            "activated": self.activated,
            "deactivated": self.deactivated,
        }


def run_schedule_pass(db_session: Session, now: Optional[datetime] = None) -> PassResult:
    """
    Apply the activate rule then the deactivate rule and commit.

    Raises:
        SQLAlchemyError: The pass failed and was rolled back.
    """
    cutoff = start_of_day(now or datetime.now(timezone.utc))

    activate = (
        update(FeatureToggle)
        .where(FeatureToggle.active_at.is_not(None), FeatureToggle.active_at <= cutoff)
        .values(value=ToggleValue.TRUE.value)
        .execution_options(synchronize_session=False)
    )
    deactivate = (
        update(FeatureToggle)
        .where(FeatureToggle.disabled_at.is_not(None), FeatureToggle.disabled_at <= cutoff)
        .values(value=ToggleValue.FALSE.value)
        .execution_options(synchronize_session=False)
    )

    try:
        activated = db_session.execute(activate).rowcount
        deactivated = db_session.execute(deactivate).rowcount
        db_session.commit()
    except SQLAlchemyError as e:
        db_session.rollback()
        log_structured(logger, LogLevel.ERROR, "Schedule pass failed", cutoff=cutoff, error=str(e))
        raise

    # Rows matched by the rules, not only rows whose value changed.
    result = PassResult(cutoff=cutoff, activated=activated, deactivated=deactivated)
    log_structured(logger, LogLevel.INFO, "Schedule pass completed", **result.to_dict())
    return result


class ScheduleRunner:
    """
    Runs schedule passes every ``interval`` seconds in a daemon thread.

    Args:
        session_factory: Callable returning a new Session for each pass.
        interval (float): Seconds between pass starts.
        clock: Callable returning the current time; used for the cutoff.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval: float = 60.0,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._session_factory = session_factory
        self._interval = max(0.01, float(interval))
        self._clock = clock
        self._pass_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> Optional[PassResult]:
        """
        Run one pass unless another is in progress.

        Returns:
            PassResult, or None when the pass was skipped or failed.
        """
        if not self._pass_lock.acquire(blocking=False):
            logger.warning("Schedule pass still running, skipping this tick")
            return None
        try:
            db_session = self._session_factory()
            try:
                return run_schedule_pass(db_session, now=self._clock())
            finally:
                db_session.close()
        except SQLAlchemyError:
            # Already logged; the next tick retries.
            return None
        finally:
            self._pass_lock.release()

    def _loop(self):
        logger.info("Schedule runner started (interval=%ss)", self._interval)
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self._interval)
        logger.info("Schedule runner stopped")

    def start(self):
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="schedule-runner", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
