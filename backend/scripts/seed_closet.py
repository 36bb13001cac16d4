#!/usr/bin/env python3
"""
Fill the catalog with a sample wardrobe for development.

Usage:
    python scripts/seed_closet.py
    python scripts/seed_closet.py --clear   # delete existing items and outfits first

Every item gets a plain colored square as its photo.
"""

import argparse
import asyncio
import sys
from io import BytesIO
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from PIL import Image, ImageOps

from closet.config import get_settings
from closet.database import Database
from closet.services.image_service import ImageService, ImageUpload
from closet.services.item_service import ItemService
from closet.services.outfit_service import OutfitService

COLORS = {
    "Black": "#1a1a1a",
    "White": "#f5f5f5",
    "Navy": "#1e3a5f",
    "Grey": "#808080",
    "Beige": "#f5f5dc",
    "Olive": "#556b2f",
    "Brown": "#8b4513",
    "Red": "#cc0000",
    "Blue": "#0066cc",
    "Charcoal": "#36454f",
}

# name, category, color, brand, season, fit, material, tags
SAMPLE_ITEMS = [
    ("Classic White T-Shirt", "TOPS", "White", "Basic Brand", "ALL_SEASON", "REGULAR", "Cotton", ["casual", "essential"]),
    ("Black Crew Neck", "TOPS", "Black", "Basic Brand", "ALL_SEASON", "REGULAR", "Cotton", ["casual", "essential"]),
    ("Navy Polo Shirt", "TOPS", "Navy", "Classic Co", "ALL_SEASON", "REGULAR", "Cotton", ["smart-casual"]),
    ("Long Sleeve Button-Up", "TOPS", "Blue", "Formal Co", "ALL_SEASON", "REGULAR", "Cotton", ["formal", "office"]),
    ("Red Flannel Shirt", "TOPS", "Red", "Outdoor Co", "FALL", "REGULAR", "Flannel", ["casual", "fall"]),
    ("Dark Wash Jeans", "BOTTOMS", "Navy", "Denim Co", "ALL_SEASON", "REGULAR", "Denim", ["casual", "essential"]),
    ("Grey Chinos", "BOTTOMS", "Grey", "Casual Wear", "ALL_SEASON", "REGULAR", "Cotton", ["smart-casual"]),
    ("Beige Trousers", "BOTTOMS", "Beige", "Formal Co", "SPRING", "REGULAR", "Wool", ["formal", "office"]),
    ("Olive Cargo Pants", "BOTTOMS", "Olive", "Outdoor Co", "FALL", "REGULAR", "Cotton", ["casual", "outdoor"]),
    ("Black Leather Jacket", "OUTERWEAR", "Black", "Classic Co", "FALL", "REGULAR", "Leather", ["casual", "statement"]),
    ("Navy Peacoat", "OUTERWEAR", "Navy", "Formal Co", "WINTER", "REGULAR", "Wool", ["formal", "winter"]),
    ("Grey Hoodie", "OUTERWEAR", "Grey", "Casual Wear", "FALL", "OVERSIZED", "Cotton", ["casual", "comfortable"]),
    ("White Sneakers", "SHOES", "White", "Sneaker Co", "ALL_SEASON", None, "Canvas", ["casual", "essential"]),
    ("Black Leather Boots", "SHOES", "Black", "Shoe Co", "FALL", None, "Leather", ["casual", "fall"]),
    ("Brown Oxfords", "SHOES", "Brown", "Formal Co", "ALL_SEASON", None, "Leather", ["formal", "office"]),
    ("Charcoal Dress Shoes", "SHOES", "Charcoal", "Formal Co", "ALL_SEASON", None, "Leather", ["formal"]),
    ("Brown Leather Belt", "ACCESSORIES", "Brown", "Accessories Co", "ALL_SEASON", None, "Leather", ["essential"]),
    ("Navy Baseball Cap", "ACCESSORIES", "Navy", "Casual Wear", "SUMMER", None, "Cotton", ["casual", "summer"]),
]

# name, season, tags, item names
SAMPLE_OUTFITS = [
    ("Weekend Basics", "ALL_SEASON", ["casual"], ["Classic White T-Shirt", "Dark Wash Jeans", "White Sneakers"]),
    ("Office Ready", "SPRING", ["office"], ["Long Sleeve Button-Up", "Beige Trousers", "Brown Oxfords", "Brown Leather Belt"]),
    ("Autumn Layers", "FALL", ["casual", "fall"], ["Red Flannel Shirt", "Olive Cargo Pants", "Black Leather Boots", "Black Leather Jacket"]),
]


def color_swatch(color: str, size: int = 400) -> bytes:
    """A filled square with a light border, as PNG bytes."""
    image = Image.new("RGB", (size - 4, size - 4), COLORS.get(color, "#cccccc"))
    image = ImageOps.expand(image, border=2, fill="#e0e0e0")
    output = BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


async def clear_catalog(items: ItemService, outfits: OutfitService) -> None:
    for outfit in await outfits.get_list():
        await outfits.delete(outfit.id)
    for item in await items.get_list():
        await items.delete(item.id)


async def seed(clear: bool) -> None:
    settings = get_settings()
    settings.validate_storage()

    database = Database(
        settings.database_url,
        echo=settings.database_echo,
        connect_timeout=settings.database_connect_timeout,
    )
    await database.open()

    try:
        items = ItemService(database, ImageService())
        outfits = OutfitService(database)

        if clear:
            await clear_catalog(items, outfits)
            print("Cleared existing catalog")

        created = {}
        for name, category, color, brand, season, fit, material, tags in SAMPLE_ITEMS:
            item = await items.create(
                {
                    "name": name,
                    "category": category,
                    "color": color,
                    "brand": brand,
                    "season": season,
                    "fit": fit,
                    "material": material,
                    "tags": tags,
                },
                image=ImageUpload(data=color_swatch(color), content_type="image/png"),
            )
            created[name] = item.id
            print(f"  [{item.id}] {name}")

        for name, season, tags, item_names in SAMPLE_OUTFITS:
            outfit = await outfits.create(
                {
                    "name": name,
                    "season": season,
                    "tags": tags,
                    "item_ids": [created[item_name] for item_name in item_names],
                }
            )
            print(f"  [{outfit.id}] {name} ({len(outfit.items)} items)")

        print(f"\nDone! Items: {len(created)}, Outfits: {len(SAMPLE_OUTFITS)}")
    finally:
        await database.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the closet catalog with sample data")
    parser.add_argument(
        "--clear", action="store_true", help="delete existing items and outfits first"
    )
    args = parser.parse_args()

    print(f"Seeding {get_settings().database_url}...")
    asyncio.run(seed(args.clear))
