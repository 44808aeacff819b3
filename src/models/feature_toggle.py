"""
FeatureToggle model for the toggle registry.

A toggle row is keyed by its identity, ``<group-id>|<name>``. Groups have no
row of their own; they are the set of toggles sharing a group-id prefix.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import BigInteger, DateTime, Integer, JSON, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from utils.time_utils import as_utc

# Postgres stores tags as text[]; other engines fall back to a JSON list.
TagList = ARRAY(Text).with_variant(JSON(), "sqlite")
SurrogateKey = BigInteger().with_variant(Integer(), "sqlite")


class FeatureToggle(Base):
    """
    A named boolean switch.

    Attributes:
        id (int): Surrogate primary key, not externally meaningful
        key (str): Identity of the toggle, unique across all toggles
        value (str): Literal "true" or "false"
        active_at (datetime): When reached, the scheduler forces value to "true"
        disabled_at (datetime): When reached, the scheduler forces value to "false"
        secret (str): Shared secret of the toggle's group
        tags (list): Free-form labels used for filtering
    """
    __tablename__ = "feature_toggles"

    id: Mapped[int] = mapped_column(SurrogateKey, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    value: Mapped[str] = mapped_column(String, nullable=False)
    active_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    disabled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    secret: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[Optional[List[str]]] = mapped_column(TagList, nullable=True, default=list)

    def to_dict(self):
        """
        Convert the toggle to its public dictionary form.

        The secret is never part of this representation.
        """
        active_at = as_utc(self.active_at)
        disabled_at = as_utc(self.disabled_at)
        return {
            "key": self.key,
            "value": self.value,
            "activeAt": active_at.isoformat() if active_at else None,
            "disabledAt": disabled_at.isoformat() if disabled_at else None,
            "tags": list(self.tags or []),
        }
