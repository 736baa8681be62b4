"""Lorebook entry models, as read from an exchanged document."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .graph import Images


class LorebookModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # null fields fall back to their defaults
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class SubLocationEntry(LorebookModel):
    images: Images = Field(default_factory=dict)


class KnowsEntry(LorebookModel):
    relationship: str = ""
    thoughts: str = ""


class LorebookEntry(LorebookModel):
    """One entry of a lorebook.

    Category-specific fields default to empty so a single model covers
    locations, characters and events.
    """

    keywords: list[str] = Field(default_factory=list)
    category: str = ""
    name: str = ""
    content: str = ""
    content_short: str = Field(default="", alias="contentShort")
    triggers: list[str] = Field(default_factory=list)
    images: Images = Field(default_factory=dict)
    filters: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True

    # location
    sub_locations: dict[str, SubLocationEntry] = Field(default_factory=dict, alias="subLocations")

    # character / event
    can_spawn_at: dict[str, float] = Field(default_factory=dict, alias="canSpawnAt")
    disabled_for: list[str] = Field(default_factory=list, alias="disabledFor")
    knows: dict[str, KnowsEntry] = Field(default_factory=dict)

    # event
    time_filter: list[str] = Field(default_factory=list, alias="timeFilter")
