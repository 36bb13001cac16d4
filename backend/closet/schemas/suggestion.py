from pydantic import BaseModel, Field

from closet.models.item import Category, Season

MIN_ITEMS_PER_OUTFIT = 2
MAX_SUGGESTIONS = 5
NAME_MAX_LENGTH = 80
REASONING_MAX_LENGTH = 400


class CatalogEntry(BaseModel):
    """One item as it is described to the AI stylist."""

    id: str
    name: str
    category: Category
    color: str
    season: Season
    brand: str | None = None
    material: str | None = None
    tags: list[str] = Field(default_factory=list)
    image_url: str | None = Field(None, exclude=True)


class OutfitSuggestion(BaseModel):
    name: str
    item_ids: list[str]
    reasoning: str = ""


class SuggestionResponse(BaseModel):
    outfits: list[OutfitSuggestion]
