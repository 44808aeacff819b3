"""
Group identifiers.

A toggle's identity is ``<group-id>|<name>``. The group-id is a version-4
UUID; the name is any text without a pipe, the empty string included.
"""
import uuid

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import Session

from models.feature_toggle import FeatureToggle
from utils.logging_utils import get_logger

logger = get_logger(__name__)

SEPARATOR = "|"


def split_group_id(identity: str) -> str:
    """Text before the first pipe, or the whole identity if there is none."""
    return identity.split(SEPARATOR, 1)[0]


def _is_uuid(text: str) -> bool:
    try:
        parsed = uuid.UUID(text)
    except (ValueError, AttributeError, TypeError):
        return False
    return 1 <= (parsed.version or 0) <= 5


def has_group_prefix(identity: str) -> bool:
    """
    Whether the identity starts with a syntactically valid UUID (v1..v5).

    A bare UUID with no pipe counts: it names the empty-named toggle of that
    group.
    """
    if not isinstance(identity, str):
        return False
    return _is_uuid(split_group_id(identity))


def is_bare_group_id(identity: str) -> bool:
    return SEPARATOR not in identity and has_group_prefix(identity)


def group_member_filter(group_id: str):
    """Rows whose key is ``group_id`` itself or starts with ``group_id|``."""
    return or_(
        FeatureToggle.key == group_id,
        FeatureToggle.key.startswith(group_id + SEPARATOR, autoescape=True),
    )


def group_exists(db_session: Session, group_id: str) -> bool:
    return db_session.execute(select(exists().where(group_member_filter(group_id)))).scalar()


def allocate_group_id(db_session: Session) -> str:
    """
    Mint a group id that no existing toggle uses.

    Re-rolls until the id is unused. Store errors propagate: uniqueness is
    never assumed when it could not be checked.
    """
    while True:
        group_id = str(uuid.uuid4())
        if not group_exists(db_session, group_id):
            return group_id
        logger.warning("Group id collision on %s, re-rolling", group_id)


def join_identity(group_id: str, name: str) -> str:
    return f"{group_id}{SEPARATOR}{name}"
