import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from closet.database import Database
from closet.models.outfit import Outfit
from closet.schemas.item import ItemResponse
from closet.schemas.outfit import OutfitCreate, OutfitResponse, OutfitUpdate
from closet.services.association import OutfitAssociationManager
from closet.services.entity_store import EntityStore
from closet.services.item_service import coerce
from closet.services.tags import serialize_tags

logger = logging.getLogger(__name__)


class OutfitService:
    """Outfits with their items resolved at read time."""

    def __init__(self, database: Database):
        self.database = database
        self.store: EntityStore[Outfit] = EntityStore(database, Outfit, "Outfit")
        self.associations = OutfitAssociationManager()

    async def _to_responses(
        self, session: AsyncSession, outfits: list[Outfit]
    ) -> list[OutfitResponse]:
        resolved = await self.associations.resolve(session, [outfit.id for outfit in outfits])
        return [
            OutfitResponse(
                id=outfit.id,
                name=outfit.name,
                tags=outfit.tags,
                season=outfit.season,
                notes=outfit.notes,
                items=[ItemResponse.model_validate(item) for item in resolved[outfit.id]],
                created_at=outfit.created_at,
                updated_at=outfit.updated_at,
            )
            for outfit in outfits
        ]

    async def get_list(self) -> list[OutfitResponse]:
        async with self.database.transaction() as session:
            outfits = await self.store.get_all(session)
            return await self._to_responses(session, outfits)

    async def get(self, outfit_id: str) -> OutfitResponse | None:
        async with self.database.transaction() as session:
            outfit = await self.store.get_by_id(session, outfit_id)
            if outfit is None:
                return None
            (response,) = await self._to_responses(session, [outfit])
            return response

    async def create(self, outfit_data: OutfitCreate | Mapping[str, Any]) -> OutfitResponse:
        outfit_data = coerce(OutfitCreate, outfit_data)
        values = outfit_data.model_dump(exclude={"tags", "item_ids"})
        values["tags"] = serialize_tags(outfit_data.tags)

        async with self.database.transaction() as session:
            item_ids = await self.associations.existing_item_ids(session, outfit_data.item_ids)
            outfit = await self.store.insert(session, values)
            await self.associations.replace(session, outfit.id, item_ids)
            (response,) = await self._to_responses(session, [outfit])

        logger.info("Created outfit %s with %d item(s)", outfit.id, len(item_ids))
        return response

    async def update(
        self, outfit_id: str, outfit_data: OutfitUpdate | Mapping[str, Any]
    ) -> OutfitResponse:
        """Apply a partial update; a new ``item_ids`` list replaces the old one."""
        outfit_data = coerce(OutfitUpdate, outfit_data)
        changes = outfit_data.model_dump(exclude_unset=True)
        item_ids = changes.pop("item_ids", None)
        if "tags" in changes:
            changes["tags"] = serialize_tags(changes["tags"])

        async with self.database.transaction(self.store.lock_key(outfit_id)) as session:
            outfit = await self.store.update(session, outfit_id, changes)
            if item_ids is not None:
                item_ids = await self.associations.existing_item_ids(session, item_ids)
                await self.associations.replace(session, outfit_id, item_ids)
            (response,) = await self._to_responses(session, [outfit])

        return response

    async def delete(self, outfit_id: str) -> None:
        """Delete the outfit and its links; the linked items are untouched."""
        async with self.database.transaction(self.store.lock_key(outfit_id)) as session:
            await self.associations.clear(session, outfit_id)
            await self.store.delete(session, outfit_id)
        logger.info("Deleted outfit %s", outfit_id)
