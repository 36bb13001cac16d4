from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from closet.models.item import Category, Fit, Season
from closet.services.tags import deserialize_tags


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: Category
    color: str = Field(..., min_length=1, max_length=50)
    season: Season = Season.ALL_SEASON
    fit: Fit | None = None
    brand: str | None = Field(None, max_length=100)
    material: str | None = Field(None, max_length=100)
    tags: list[str] = Field(default_factory=list)

    @field_validator("name", "color", mode="before")
    @classmethod
    def strip_required_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("fit", "brand", "material", mode="before")
    @classmethod
    def blank_optional_text(cls, value):
        return blank_to_none(value)


class ItemCreate(ItemBase):
    # Set when the image was stored elsewhere (imports, seeding)
    image_url: str | None = None


class ItemUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(None, min_length=1, max_length=100)
    category: Category | None = None
    color: str | None = Field(None, min_length=1, max_length=50)
    season: Season | None = None
    fit: Fit | None = None
    brand: str | None = Field(None, max_length=100)
    material: str | None = Field(None, max_length=100)
    tags: list[str] | None = None
    image_url: str | None = None

    @field_validator("name", "category", "color", "season", "tags", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field may not be null")
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("fit", "brand", "material", mode="before")
    @classmethod
    def blank_optional_text(cls, value):
        return blank_to_none(value)


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: Category
    color: str
    season: Season
    fit: Fit | None = None
    brand: str | None = None
    material: str | None = None
    tags: list[str] = Field(default_factory=list)
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("tags", mode="before")
    @classmethod
    def decode_tags(cls, value):
        if isinstance(value, list):
            return value
        return deserialize_tags(value)


class ItemFilter(BaseModel):
    category: Category | None = None
    season: Season | None = None
    color: str | None = None
    search: str | None = None

    @field_validator("category", "season", "color", "search", mode="before")
    @classmethod
    def blank_filters(cls, value):
        return blank_to_none(value)
