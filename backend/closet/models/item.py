import enum
from datetime import datetime

from sqlalchemy import Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from closet.database import Base
from closet.models.types import UTCDateTime


class Category(enum.StrEnum):
    TOPS = "TOPS"
    BOTTOMS = "BOTTOMS"
    OUTERWEAR = "OUTERWEAR"
    SHOES = "SHOES"
    ACCESSORIES = "ACCESSORIES"


class Season(enum.StrEnum):
    SPRING = "SPRING"
    SUMMER = "SUMMER"
    FALL = "FALL"
    WINTER = "WINTER"
    ALL_SEASON = "ALL_SEASON"


class Fit(enum.StrEnum):
    TIGHT = "TIGHT"
    REGULAR = "REGULAR"
    LOOSE = "LOOSE"
    OVERSIZED = "OVERSIZED"


class ClothingItem(Base):
    __tablename__ = "clothing_items"
    __table_args__ = (
        Index("ix_clothing_items_category", "category"),
        Index("ix_clothing_items_season", "season"),
        Index("ix_clothing_items_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[Category] = mapped_column(
        Enum(Category, name="category", native_enum=False, length=20), nullable=False
    )
    color: Mapped[str] = mapped_column(String(50), nullable=False)
    season: Mapped[Season] = mapped_column(
        Enum(Season, name="season", native_enum=False, length=20),
        nullable=False,
        default=Season.ALL_SEASON,
    )
    fit: Mapped[Fit | None] = mapped_column(Enum(Fit, name="fit", native_enum=False, length=20))
    brand: Mapped[str | None] = mapped_column(String(100))
    material: Mapped[str | None] = mapped_column(String(100))

    # JSON-encoded list of strings
    tags: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    # Managed upload path or inline data URL
    image_url: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
