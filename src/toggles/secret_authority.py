"""
Secret Authority

Every mutation of a group is gated by the group's shared secret. The group
has no row of its own, so its secret is read from a representative member:
the member with the lexicographically smallest identity. That rule is used
for every "the group's secret" decision.
"""
import re
import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.feature_toggle import FeatureToggle
from toggles.errors import (
    NotFoundError,
    RotationFailedError,
    SecretNotAcceptableError,
    UnauthorizedError,
)
from toggles.identifiers import group_member_filter, is_bare_group_id, split_group_id
from utils.logging_utils import LogLevel, get_logger, log_structured

logger = get_logger(__name__)

# RFC 3986 path segment characters: unreserved, sub-delims, ':' and '@',
# plus well-formed percent escapes.
_PCHAR = r"(?:[A-Za-z0-9\-._~!$&'()*+,;=:@]|%[0-9A-Fa-f]{2})"
_PATH_SEGMENT = re.compile(rf"{_PCHAR}*")


def generate_secret() -> str:
    """Three concatenated uuid4 strings: 108 characters, 366 random bits."""
    return str(uuid.uuid4()) + str(uuid.uuid4()) + str(uuid.uuid4())


def is_url_safe(secret: str) -> bool:
    """
    Whether ``https://example.com/<secret>`` is a valid request URI with the
    secret as a single, unescaped path segment. The empty string is accepted.
    """
    if not isinstance(secret, str):
        return False
    return _PATH_SEGMENT.fullmatch(secret) is not None


class SecretAuthority:
    """Verifies and rotates group secrets against an injected session."""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def representative(self, group_id: str) -> Optional[FeatureToggle]:
        """The group member whose secret is the group's secret, if any."""
        stmt = (
            select(FeatureToggle)
            .where(group_member_filter(group_id))
            .order_by(FeatureToggle.key)
            .limit(1)
        )
        return self.db_session.execute(stmt).scalars().first()

    def verify(self, identity: str, presented_secret: Optional[str]) -> bool:
        """
        True only when the identity's group has members and the presented
        secret equals the group's secret. Store errors propagate.
        """
        group_id = split_group_id(identity)
        member = self.representative(group_id)
        if member is None:
            return False
        return presented_secret is not None and presented_secret == (member.secret or "")

    def authorize(self, identity: str, presented_secret: Optional[str], missing_message: Optional[str] = None) -> None:
        """
        Raise unless the secret may mutate the identity's group.

        Raises:
            NotFoundError: The group has no members, or ``group_id`` is not a bare group id.
            UnauthorizedError: The group exists but the secret does not match.
        """
        group_id = split_group_id(identity)
        member = self.representative(group_id)
        if member is None:
            log_structured(logger, LogLevel.WARNING, "Group not found during authorization",
                           key=identity, group_id=group_id)
            raise NotFoundError(missing_message)
        if presented_secret is None or presented_secret != (member.secret or ""):
            log_structured(logger, LogLevel.WARNING, "Invalid secret", key=identity)
            raise UnauthorizedError()

    def rotate(self, group_id: str, old_secret: str, new_secret: str) -> str:
        """
        Replace the secret of every member of the group in one statement.

        Returns:
            str: The group id.

        Raises:
            NotFoundError: ``group_id`` is not a bare group id, or the
                group has no members.
            UnauthorizedError: ``old_secret`` is not the group's secret.
            SecretNotAcceptableError: ``new_secret`` is not URL safe.
            RotationFailedError: The update failed; nothing was changed.
        """
        if not is_bare_group_id(group_id):
            log_structured(logger, LogLevel.WARNING, "Secret rotation requires a bare group id", group_id=group_id)
            raise NotFoundError("Group not found")

        self.authorize(group_id, old_secret)

        if not is_url_safe(new_secret):
            log_structured(logger, LogLevel.WARNING, "New secret is not URL parseable", group_id=group_id)
            raise SecretNotAcceptableError()

        stmt = (
            update(FeatureToggle)
            .where(group_member_filter(group_id))
            .values(secret=new_secret)
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = self.db_session.execute(stmt)
            self.db_session.commit()
        except SQLAlchemyError as e:
            self.db_session.rollback()
            log_structured(logger, LogLevel.ERROR, "Failed to update secret", group_id=group_id, error=str(e))
            raise RotationFailedError() from e

        log_structured(logger, LogLevel.INFO, "Successfully updated secret",
                       group_id=group_id, members=result.rowcount)
        return group_id
