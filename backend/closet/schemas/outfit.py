from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from closet.models.item import Season
from closet.schemas.item import ItemResponse, blank_to_none
from closet.services.tags import deserialize_tags


class OutfitCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    tags: list[str] = Field(default_factory=list)
    season: Season = Season.ALL_SEASON
    notes: str | None = None
    item_ids: list[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("notes", mode="before")
    @classmethod
    def blank_notes(cls, value):
        return blank_to_none(value)


class OutfitUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(None, min_length=1, max_length=100)
    tags: list[str] | None = None
    season: Season | None = None
    notes: str | None = None
    # When present, replaces the outfit's whole item list
    item_ids: list[str] | None = None

    @field_validator("name", "tags", "season", "item_ids", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field may not be null")
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("notes", mode="before")
    @classmethod
    def blank_notes(cls, value):
        return blank_to_none(value)


class OutfitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    tags: list[str] = Field(default_factory=list)
    season: Season
    notes: str | None = None
    items: list[ItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def item_ids(self) -> list[str]:
        return [item.id for item in self.items]

    @field_validator("tags", mode="before")
    @classmethod
    def decode_tags(cls, value):
        if isinstance(value, list):
            return value
        return deserialize_tags(value)
