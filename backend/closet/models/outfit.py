from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from closet.database import Base
from closet.models.item import Season
from closet.models.types import UTCDateTime


class Outfit(Base):
    __tablename__ = "outfits"
    __table_args__ = (
        Index("ix_outfits_season", "season"),
        Index("ix_outfits_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    tags: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    season: Mapped[Season] = mapped_column(
        Enum(Season, name="season", native_enum=False, length=20),
        nullable=False,
        default=Season.ALL_SEASON,
    )
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)


class OutfitItem(Base):
    __tablename__ = "outfit_items"

    outfit_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("outfits.id", ondelete="CASCADE"), primary_key=True
    )
    # Not a foreign key: deleting an item leaves the reference dangling
    item_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
