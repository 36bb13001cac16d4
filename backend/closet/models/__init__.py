"""Database models."""

from closet.models.item import Category, ClothingItem, Fit, Season
from closet.models.outfit import Outfit, OutfitItem

__all__ = [
    "Category",
    "ClothingItem",
    "Fit",
    "Outfit",
    "OutfitItem",
    "Season",
]
