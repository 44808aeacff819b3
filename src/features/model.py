"""Pydantic schema for feature toggle API requests."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class FeatureToggleCreate(BaseModel):
    """
    Body of ``POST /features``.

    Field names are accepted capitalised (``Key``) or in lower/camel case
    (``key``, ``activeAt``).

    Attributes
    ----------
    key : str
        Identity of the toggle. Without a group-id prefix a new group is
        created and the key becomes ``<group-id>|<key>``.
    value : str
        ``"true"`` or ``"false"``.
    secret : Optional[str]
        Group secret; required when ``key`` carries a group-id prefix.
    active_at, disabled_at : Optional[datetime]
        Schedule timestamps.
    tags : List[str]
        Labels usable for filtering group listings.
    """

    model_config = ConfigDict(extra="ignore")

    key: str = Field("", validation_alias=AliasChoices("Key", "key"))
    value: Literal["true", "false"] = Field(..., validation_alias=AliasChoices("Value", "value"))
    secret: Optional[str] = Field(None, validation_alias=AliasChoices("Secret", "secret"))
    active_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("ActiveAt", "activeAt", "active_at")
    )
    disabled_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("DisabledAt", "disabledAt", "disabled_at")
    )
    tags: List[str] = Field(default_factory=list, validation_alias=AliasChoices("Tags", "tags"))

    @field_validator("key", mode="before")
    @classmethod
    def key_defaults_to_empty(cls, v):
        """A null key names the empty toggle of a new group."""
        return "" if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def tags_default_to_empty(cls, v):
        return [] if v is None else v
