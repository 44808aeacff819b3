"""
Toggle Store

CRUD over ``feature_toggles`` with the secret gate applied to every write.
Authorization and existence are settled before anything is written, so a
rejected request has no side effects.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.feature_toggle import FeatureToggle
from toggles.errors import (
    BadInputError,
    NotFoundError,
    StorageUnavailableError,
    WriteConflictError,
)
from toggles.identifiers import (
    allocate_group_id,
    group_member_filter,
    has_group_prefix,
    is_bare_group_id,
    join_identity,
)
from toggles.secret_authority import SecretAuthority, generate_secret
from utils.logging_utils import LogLevel, get_logger, log_structured
from utils.time_utils import as_utc, parse_timestamp
from utils.vocab_enums import ToggleValue

logger = get_logger(__name__)

GROUP_NOT_FOUND = "No feature toggles found for provided UUID"


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Strip blanks and duplicates while keeping first-seen order."""
    seen = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class ToggleStore:
    """
    Toggle operations bound to one database session.

    Args:
        db_session (Session): Session every operation runs in.
        authority (SecretAuthority, optional): Secret gate; built from the
            session when omitted.
    """

    def __init__(self, db_session: Session, authority: Optional[SecretAuthority] = None):
        self.db_session = db_session
        self.authority = authority or SecretAuthority(db_session)

    @contextmanager
    def _write(self, failure_message: str, key: str):
        try:
            yield
            self.db_session.commit()
        except IntegrityError as e:
            self.db_session.rollback()
            log_structured(logger, LogLevel.ERROR, "Integrity error on write", key=key, error=str(e.orig))
            raise WriteConflictError() from e
        except SQLAlchemyError as e:
            self.db_session.rollback()
            log_structured(logger, LogLevel.ERROR, failure_message, key=key, error=str(e))
            raise StorageUnavailableError(failure_message) from e

    # Reads

    def find(self, key: str) -> Optional[FeatureToggle]:
        return self.db_session.execute(
            select(FeatureToggle).where(FeatureToggle.key == key)
        ).scalars().first()

    def get(self, key: str) -> FeatureToggle:
        toggle = self.find(key)
        if toggle is None:
            raise NotFoundError()
        return toggle

    def list_group(self, group_id: str, tags: Optional[Iterable[str]] = None) -> List[FeatureToggle]:
        """
        Members of a group ordered by identity, optionally limited to those
        carrying every one of ``tags``.

        Raises:
            NotFoundError: No member matches.
        """
        members = self.db_session.execute(
            select(FeatureToggle).where(group_member_filter(group_id)).order_by(FeatureToggle.key)
        ).scalars().all()

        required = normalize_tags(tags)
        if required:
            members = [m for m in members if set(required).issubset(m.tags or [])]

        if not members:
            raise NotFoundError(GROUP_NOT_FOUND)
        return list(members)

    def read(self, key: str, tags: Optional[Iterable[str]] = None) -> Union[FeatureToggle, List[FeatureToggle]]:
        """
        Exact toggle when ``key`` matches one, otherwise the group listing
        when ``key`` is a bare group id.
        """
        toggle = self.find(key)
        if toggle is not None:
            return toggle
        if not is_bare_group_id(key):
            raise NotFoundError()
        return self.list_group(key, tags)

    # Writes

    def create(
        self,
        key: str,
        value: str,
        secret: Optional[str] = None,
        active_at: Optional[datetime] = None,
        disabled_at: Optional[datetime] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Tuple[FeatureToggle, Optional[str]]:
        """
        Create a toggle.

        Without a group prefix a new group is minted and a secret generated;
        the secret is returned only in that case. With a prefix the presented
        secret must match the group's.

        Returns:
            Tuple[FeatureToggle, Optional[str]]: The row and the fresh secret.
        """
        key = key or ""
        if value not in (ToggleValue.TRUE.value, ToggleValue.FALSE.value):
            raise BadInputError("Value must be \"true\" or \"false\"")

        fresh_secret = None
        if has_group_prefix(key):
            self.authority.authorize(key, secret, missing_message="Group not found")
        else:
            key = join_identity(allocate_group_id(self.db_session), key)
            fresh_secret = generate_secret()
            secret = fresh_secret

        toggle = FeatureToggle(
            key=key,
            value=value,
            active_at=as_utc(active_at),
            disabled_at=as_utc(disabled_at),
            secret=secret,
            tags=normalize_tags(tags),
        )
        with self._write("Failed to create feature toggle", key):
            self.db_session.add(toggle)

        log_structured(logger, LogLevel.INFO, "Successfully created feature toggle",
                       key=toggle.key, value=toggle.value, new_group=fresh_secret is not None)
        return toggle, fresh_secret

    def _authorized_get(self, key: str, secret: Optional[str]) -> FeatureToggle:
        self.authority.authorize(key, secret)
        return self.get(key)

    def set_value(self, key: str, secret: Optional[str], value: ToggleValue) -> FeatureToggle:
        toggle = self._authorized_get(key, secret)
        with self._write(f"Failed to set feature toggle to {value.value}", key):
            toggle.value = value.value
        log_structured(logger, LogLevel.INFO, "Feature toggle value set", key=key, value=value.value)
        return toggle

    def activate(self, key: str, secret: Optional[str]) -> FeatureToggle:
        return self.set_value(key, secret, ToggleValue.TRUE)

    def deactivate(self, key: str, secret: Optional[str]) -> FeatureToggle:
        return self.set_value(key, secret, ToggleValue.FALSE)

    def schedule(self, key: str, secret: Optional[str], field: str, timestamp: str) -> FeatureToggle:
        """
        Set ``active_at`` or ``disabled_at``. The value itself is left to
        the scheduler.

        Raises:
            BadInputError: ``timestamp`` is not a valid date/time.
        """
        toggle = self._authorized_get(key, secret)
        try:
            when = parse_timestamp(timestamp)
        except ValueError as e:
            raise BadInputError(f"Invalid date: {timestamp}") from e

        with self._write(f"Failed to set feature toggle {field}", key):
            setattr(toggle, field, when)
        log_structured(logger, LogLevel.INFO, f"Successfully set feature toggle {field}",
                       key=key, **{field: when})
        return toggle

    def activate_at(self, key: str, secret: Optional[str], timestamp: str) -> FeatureToggle:
        return self.schedule(key, secret, "active_at", timestamp)

    def deactivate_at(self, key: str, secret: Optional[str], timestamp: str) -> FeatureToggle:
        return self.schedule(key, secret, "disabled_at", timestamp)

    def delete(self, key: str, secret: Optional[str]) -> None:
        """Remove exactly one toggle; the rest of its group is untouched."""
        toggle = self._authorized_get(key, secret)
        with self._write("Failed to delete feature toggle", key):
            self.db_session.delete(toggle)
        log_structured(logger, LogLevel.INFO, "Successfully deleted feature toggle", key=key)
