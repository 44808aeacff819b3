"""
Digest Engine

A group's digest is a SHA-256 over one text line per member, ordered by
identity so the result does not depend on insertion or retrieval order.

Member line (space separated):
    identity value active_at disabled_at tags

Timestamps render as UTC ``YYYY-MM-DD HH:MM:SS+00:00`` (empty when unset);
tags are sorted and joined with commas (empty when none).
"""
import hashlib
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.feature_toggle import FeatureToggle
from toggles.errors import NotFoundError
from toggles.identifiers import group_member_filter
from utils.time_utils import as_utc

DIGEST_NOT_FOUND = "Failed to calculate collection hash for provided UUID"


def _timestamp_text(value: Optional[datetime]) -> str:
    value = as_utc(value)
    return value.isoformat(sep=" ") if value else ""


def digest_line(toggle: FeatureToggle) -> str:
    return " ".join([
        toggle.key,
        toggle.value,
        _timestamp_text(toggle.active_at),
        _timestamp_text(toggle.disabled_at),
        ",".join(sorted(toggle.tags or [])),
    ])


def digest_of(toggles: Iterable[FeatureToggle]) -> str:
    lines = [digest_line(t) for t in sorted(toggles, key=lambda t: t.key)]
    return hashlib.sha256(" ".join(lines).encode("utf-8")).hexdigest()


def collection_digest(db_session: Session, group_id: str) -> str:
    """
    Lowercase hex SHA-256 digest of a group's toggles.

    Raises:
        NotFoundError: The group has no members.
    """
    members = db_session.execute(
        select(FeatureToggle).where(group_member_filter(group_id))
    ).scalars().all()
    if not members:
        raise NotFoundError(DIGEST_NOT_FOUND)
    return digest_of(members)
