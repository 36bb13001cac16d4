import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from closet.models.item import ClothingItem
from closet.models.outfit import OutfitItem

logger = logging.getLogger(__name__)


def _dedupe(item_ids: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered = []
    for item_id in item_ids:
        if item_id not in seen:
            seen.add(item_id)
            ordered.append(item_id)
    return ordered


class OutfitAssociationManager:
    """Outfit to item links.

    Outfits store item ids with a position, not copies of the items, and
    resolve them when read. Links are never followed by a foreign key on the
    item side, so deleting an item leaves a dangling id behind; resolution
    skips those.
    """

    async def existing_item_ids(self, session: AsyncSession, item_ids: list[str]) -> list[str]:
        """Drop ids that do not name a stored item, keeping caller order."""
        ordered = _dedupe(item_ids)
        if not ordered:
            return []

        result = await session.execute(select(ClothingItem.id).where(ClothingItem.id.in_(ordered)))
        found = set(result.scalars().all())
        missing = [item_id for item_id in ordered if item_id not in found]
        if missing:
            logger.info("Dropping %d unknown item reference(s): %s", len(missing), missing)
        return [item_id for item_id in ordered if item_id in found]

    async def replace(self, session: AsyncSession, outfit_id: str, item_ids: list[str]) -> None:
        """Swap the outfit's whole item list inside the caller's transaction."""
        await self.clear(session, outfit_id)
        rows = [
            {"outfit_id": outfit_id, "item_id": item_id, "position": position}
            for position, item_id in enumerate(_dedupe(item_ids))
        ]
        if rows:
            await session.execute(insert(OutfitItem), rows)

    async def clear(self, session: AsyncSession, outfit_id: str) -> None:
        await session.execute(delete(OutfitItem).where(OutfitItem.outfit_id == outfit_id))

    async def item_ids_for(
        self, session: AsyncSession, outfit_ids: list[str]
    ) -> dict[str, list[str]]:
        links: dict[str, list[str]] = {outfit_id: [] for outfit_id in outfit_ids}
        if not outfit_ids:
            return links

        result = await session.execute(
            select(OutfitItem)
            .where(OutfitItem.outfit_id.in_(outfit_ids))
            .order_by(OutfitItem.outfit_id, OutfitItem.position)
        )
        for link in result.scalars().all():
            links[link.outfit_id].append(link.item_id)
        return links

    async def resolve(
        self, session: AsyncSession, outfit_ids: list[str]
    ) -> dict[str, list[ClothingItem]]:
        """Map each outfit to its items in stored order, skipping dangling ids."""
        links = await self.item_ids_for(session, outfit_ids)
        wanted = {item_id for item_ids in links.values() for item_id in item_ids}
        if not wanted:
            return {outfit_id: [] for outfit_id in outfit_ids}

        result = await session.execute(select(ClothingItem).where(ClothingItem.id.in_(wanted)))
        items = {item.id: item for item in result.scalars().all()}

        resolved = {}
        for outfit_id, item_ids in links.items():
            dangling = [item_id for item_id in item_ids if item_id not in items]
            if dangling:
                logger.debug("Outfit %s has dangling item references: %s", outfit_id, dangling)
            resolved[outfit_id] = [items[item_id] for item_id in item_ids if item_id in items]
        return resolved
