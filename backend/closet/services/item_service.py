import logging
from collections.abc import Mapping
from typing import Any

import pydantic

from closet.database import Database
from closet.errors import NotFound, ValidationError
from closet.models.item import ClothingItem
from closet.schemas.item import ItemCreate, ItemFilter, ItemResponse, ItemUpdate
from closet.services.entity_store import EntityStore
from closet.services.image_service import ImageService, ImageUpload
from closet.services.query import filter_items
from closet.services.tags import serialize_tags

logger = logging.getLogger(__name__)


def coerce(schema: type[pydantic.BaseModel], data: pydantic.BaseModel | Mapping[str, Any]):
    """Validate plain mappings into ``schema``; pydantic errors become ValidationError."""
    if isinstance(data, schema):
        return data
    if isinstance(data, pydantic.BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(loc) for loc in error["loc"]) or None
        raise ValidationError(f"{field}: {error['msg']}" if field else error["msg"], field) from e


class ItemService:
    """Create, read, update, delete and list clothing items."""

    def __init__(self, database: Database, images: ImageService):
        self.database = database
        self.images = images
        self.store: EntityStore[ClothingItem] = EntityStore(database, ClothingItem, "Item")

    async def get_list(
        self, filters: ItemFilter | Mapping[str, Any] | None = None
    ) -> list[ItemResponse]:
        filters = coerce(ItemFilter, filters or {})

        # Equality filters use the category/season indexes
        criteria = []
        if filters.category is not None:
            criteria.append(ClothingItem.category == filters.category)
        if filters.season is not None:
            criteria.append(ClothingItem.season == filters.season)

        async with self.database.transaction() as session:
            records = await self.store.get_all(session, *criteria)

        return [ItemResponse.model_validate(record) for record in filter_items(records, filters)]

    async def get(self, item_id: str) -> ItemResponse | None:
        async with self.database.transaction() as session:
            record = await self.store.get_by_id(session, item_id)
        if record is None:
            return None
        return ItemResponse.model_validate(record)

    def _check_image_reference(
        self, item_id: str, reference: str | None, current: str | None = None
    ) -> None:
        """Managed references are only accepted for uploads stored for this item."""
        if not reference or reference == current or not self.images.is_managed(reference):
            return
        if not self.images.owns(item_id, reference):
            raise ValidationError(
                "image_url: Uploaded images can only be attached by uploading them", "image_url"
            )

    async def create(
        self,
        item_data: ItemCreate | Mapping[str, Any],
        image: ImageUpload | None = None,
    ) -> ItemResponse:
        item_data = coerce(ItemCreate, item_data)
        if image is not None:
            self.images.validate(image)

        item_id = self.store.id_factory()
        image_url = item_data.image_url
        self._check_image_reference(item_id, image_url)
        if image is not None:
            # A stored file is left behind if the insert below fails
            image_url = await self.images.store(item_id, image)

        values = item_data.model_dump(exclude={"tags", "image_url"})
        values["tags"] = serialize_tags(item_data.tags)
        values["image_url"] = image_url

        async with self.database.transaction() as session:
            record = await self.store.insert(session, values, entity_id=item_id)

        logger.info("Created item %s (%s)", record.id, record.category)
        return ItemResponse.model_validate(record)

    async def update(
        self,
        item_id: str,
        item_data: ItemUpdate | Mapping[str, Any],
        image: ImageUpload | None = None,
    ) -> ItemResponse:
        item_data = coerce(ItemUpdate, item_data)
        changes = item_data.model_dump(exclude_unset=True)
        if "tags" in changes:
            changes["tags"] = serialize_tags(changes["tags"])

        if image is not None:
            self.images.validate(image)
            if await self.get(item_id) is None:
                raise NotFound("Item", item_id)
            changes["image_url"] = await self.images.store(item_id, image)

        previous_image = None
        async with self.database.transaction(self.store.lock_key(item_id)) as session:
            existing = await self.store.get_by_id(session, item_id)
            if existing is not None:
                previous_image = existing.image_url
                self._check_image_reference(item_id, changes.get("image_url"), previous_image)
            record = await self.store.update(session, item_id, changes)

        if "image_url" in changes and previous_image != record.image_url:
            self.images.discard(item_id, previous_image)

        return ItemResponse.model_validate(record)

    async def delete(self, item_id: str) -> None:
        """Delete the item. Outfits keep their (now dangling) reference to it."""
        async with self.database.transaction(self.store.lock_key(item_id)) as session:
            record = await self.store.delete(session, item_id)

        self.images.discard(item_id, record.image_url)
        logger.info("Deleted item %s", item_id)
