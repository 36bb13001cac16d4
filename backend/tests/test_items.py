import pytest
from httpx import AsyncClient

from closet.errors import NotFound, UnsupportedMediaType, ValidationError
from closet.main import app
from closet.services.image_service import ImageService, ImageUpload
from closet.services.item_service import ItemService


class TestItemService:
    @pytest.mark.asyncio
    async def test_create_round_trips_tags(self, item_service: ItemService, sample_item_data):
        """Created items read back with the same tags."""
        item = await item_service.create(sample_item_data)

        fetched = await item_service.get(item.id)
        assert fetched.tags == ["casual", "essential"]
        assert fetched.name == "Classic White T-Shirt"
        assert fetched.created_at == fetched.updated_at

    @pytest.mark.asyncio
    async def test_create_assigns_distinct_ids(self, item_service: ItemService, sample_item_data):
        """Each create gets its own id."""
        first = await item_service.create(sample_item_data)
        second = await item_service.create(sample_item_data)
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_create_normalizes_optional_text(self, item_service: ItemService):
        """Required text is stripped and blank optional text becomes null."""
        item = await item_service.create(
            {
                "name": "  Grey Henley ",
                "category": "TOPS",
                "color": "Grey",
                "brand": "",
                "fit": "",
            }
        )
        assert item.name == "Grey Henley"
        assert item.brand is None
        assert item.fit is None
        assert item.season == "ALL_SEASON"

    @pytest.mark.asyncio
    async def test_tags_are_stored_verbatim(self, item_service: ItemService):
        """Tag lists are stored exactly as given."""
        tags = ["  summer ", "", "x" * 60]
        item = await item_service.create(
            {"name": "Linen Shirt", "category": "TOPS", "color": "White", "tags": tags}
        )
        assert (await item_service.get(item.id)).tags == tags

        updated = await item_service.update(item.id, {"tags": [" beach", "beach"]})
        assert updated.tags == [" beach", "beach"]

    @pytest.mark.asyncio
    async def test_create_requires_name_and_color(self, item_service: ItemService):
        """Missing name or an unknown category is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            await item_service.create({"name": "", "category": "TOPS", "color": "Grey"})
        assert exc_info.value.field == "name"

        with pytest.raises(ValidationError):
            await item_service.create({"name": "Tee", "category": "HATS", "color": "Grey"})

    @pytest.mark.asyncio
    async def test_create_with_image(
        self, item_service: ItemService, image_service: ImageService, png_bytes
    ):
        """An uploaded image is stored under the item's id."""
        item = await item_service.create(
            {"name": "Tee", "category": "TOPS", "color": "Navy"},
            image=ImageUpload(data=png_bytes, content_type="image/png"),
        )

        assert item.image_url.startswith(f"/uploads/{item.id}-")
        assert image_service.get_image_path(item.image_url).exists()

    @pytest.mark.asyncio
    async def test_rejected_image_creates_nothing(self, item_service: ItemService):
        """A rejected image leaves no item behind."""
        with pytest.raises(UnsupportedMediaType):
            await item_service.create(
                {"name": "Tee", "category": "TOPS", "color": "Navy"},
                image=ImageUpload(data=b"BM", content_type="image/bmp"),
            )
        assert await item_service.get_list() == []

    @pytest.mark.asyncio
    async def test_update_merges(self, item_service: ItemService, sample_item_data):
        """Update merges the given fields."""
        item = await item_service.create(sample_item_data)

        updated = await item_service.update(item.id, {"color": "Off White", "tags": ["summer"]})

        assert updated.color == "Off White"
        assert updated.tags == ["summer"]
        assert updated.brand == "Basic Brand"
        assert updated.material == "Cotton"
        assert updated.updated_at > item.updated_at

    @pytest.mark.asyncio
    async def test_update_can_clear_optional_field(self, item_service, sample_item_data):
        """Null clears an optional field."""
        item = await item_service.create(sample_item_data)
        updated = await item_service.update(item.id, {"brand": None})
        assert updated.brand is None

    @pytest.mark.asyncio
    async def test_update_rejects_clearing_required_field(self, item_service, sample_item_data):
        """Null on a required field is rejected."""
        item = await item_service.create(sample_item_data)
        with pytest.raises(ValidationError):
            await item_service.update(item.id, {"name": None})

    @pytest.mark.asyncio
    async def test_update_replaces_image(
        self, item_service: ItemService, image_service: ImageService, image_factory
    ):
        """A new image replaces and deletes the old file."""
        item = await item_service.create(
            {"name": "Tee", "category": "TOPS", "color": "Navy"},
            image=ImageUpload(data=image_factory("navy"), content_type="image/png"),
        )
        old_path = image_service.get_image_path(item.image_url)

        updated = await item_service.update(
            item.id, {}, image=ImageUpload(data=image_factory("red"), content_type="image/png")
        )

        assert updated.image_url != item.image_url
        assert image_service.get_image_path(updated.image_url).exists()
        assert not old_path.exists()

    @pytest.mark.asyncio
    async def test_update_missing_item(self, item_service: ItemService, png_bytes):
        """Updating a missing item raises NotFound."""
        with pytest.raises(NotFound):
            await item_service.update("missing", {"name": "x"})
        with pytest.raises(NotFound):
            await item_service.update(
                "missing", {}, image=ImageUpload(data=png_bytes, content_type="image/png")
            )

    @pytest.mark.asyncio
    async def test_delete_removes_image(
        self, item_service: ItemService, image_service: ImageService, png_bytes
    ):
        """Deleting an item deletes its image."""
        item = await item_service.create(
            {"name": "Tee", "category": "TOPS", "color": "Navy"},
            image=ImageUpload(data=png_bytes, content_type="image/png"),
        )
        path = image_service.get_image_path(item.image_url)

        await item_service.delete(item.id)

        assert await item_service.get(item.id) is None
        assert not path.exists()
        with pytest.raises(NotFound):
            await item_service.delete(item.id)

    @pytest.mark.asyncio
    async def test_other_items_image_cannot_be_claimed(
        self, item_service: ItemService, image_service: ImageService, image_factory
    ):
        """Pointing one item at another item's upload is refused and deletes nothing."""
        first = await item_service.create(
            {"name": "Tee", "category": "TOPS", "color": "Navy"},
            image=ImageUpload(data=image_factory("navy"), content_type="image/png"),
        )
        second = await item_service.create(
            {"name": "Cap", "category": "ACCESSORIES", "color": "Red"},
            image=ImageUpload(data=image_factory("red"), content_type="image/png"),
        )
        second_path = image_service.get_image_path(second.image_url)

        with pytest.raises(ValidationError) as exc_info:
            await item_service.update(first.id, {"image_url": second.image_url})
        assert exc_info.value.field == "image_url"
        with pytest.raises(ValidationError):
            await item_service.create(
                {
                    "name": "Copy",
                    "category": "ACCESSORIES",
                    "color": "Red",
                    "image_url": second.image_url,
                }
            )

        await item_service.delete(first.id)

        assert (await item_service.get(second.id)).image_url == second.image_url
        assert second_path.exists()

    @pytest.mark.asyncio
    async def test_delete_keeps_image_stored_for_another_item(
        self, item_service: ItemService, image_service: ImageService, png_bytes
    ):
        """A record already sharing another item's upload leaves that file in place."""
        owner = await item_service.create(
            {"name": "Cap", "category": "ACCESSORIES", "color": "Red"},
            image=ImageUpload(data=png_bytes, content_type="image/png"),
        )
        sharer = await item_service.create({"name": "Tee", "category": "TOPS", "color": "Navy"})
        async with item_service.database.transaction() as session:
            await item_service.store.update(session, sharer.id, {"image_url": owner.image_url})

        await item_service.delete(sharer.id)

        assert image_service.get_image_path(owner.image_url).exists()

    @pytest.mark.asyncio
    async def test_external_image_url_is_accepted(self, item_service: ItemService):
        """References outside the upload root are stored as given."""
        item = await item_service.create({"name": "Tee", "category": "TOPS", "color": "Navy"})
        updated = await item_service.update(
            item.id, {"image_url": "https://example.com/tee.png"}
        )
        assert updated.image_url == "https://example.com/tee.png"

    @pytest.mark.asyncio
    async def test_list_filters(self, item_service: ItemService):
        """Listing applies the filters conjunctively."""
        for name, category, season, color, brand in [
            ("Navy Polo", "TOPS", "ALL_SEASON", "Navy", "Classic Co"),
            ("Dark Jeans", "BOTTOMS", "ALL_SEASON", "Navy", "Denim Co"),
            ("Navy Shorts", "BOTTOMS", "SUMMER", "Navy", None),
            ("Grey Chinos", "BOTTOMS", "ALL_SEASON", "Grey", "Casual Wear"),
        ]:
            await item_service.create(
                {
                    "name": name,
                    "category": category,
                    "season": season,
                    "color": color,
                    "brand": brand,
                }
            )

        everything = await item_service.get_list()
        assert [i.name for i in everything] == [
            "Grey Chinos",
            "Navy Shorts",
            "Dark Jeans",
            "Navy Polo",
        ]

        bottoms = await item_service.get_list({"category": "BOTTOMS", "color": "NAVY"})
        assert [i.name for i in bottoms] == ["Navy Shorts", "Dark Jeans"]

        summer = await item_service.get_list({"season": "SUMMER"})
        assert [i.name for i in summer] == ["Navy Shorts"]

        denim = await item_service.get_list({"search": "denim"})
        assert [i.name for i in denim] == ["Dark Jeans"]


class TestItemRoutes:
    @pytest.mark.asyncio
    async def test_list_items_empty(self, client: AsyncClient):
        """Test listing items when none exist."""
        response = await client.get("/api/v1/items")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_create_item(self, client: AsyncClient, png_bytes):
        """Test creating an item from a multipart form."""
        response = await client.post(
            "/api/v1/items",
            files={"image": ("tee.png", png_bytes, "image/png")},
            data={
                "name": "Classic White T-Shirt",
                "category": "TOPS",
                "color": "White",
                "brand": "",
                "tags": "casual, essential,",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["tags"] == ["casual", "essential"]
        assert data["brand"] is None
        assert data["season"] == "ALL_SEASON"

        image = await client.get(data["image_url"])
        assert image.status_code == 200
        assert image.content == png_bytes
        assert image.headers["content-type"] == "image/png"

    @pytest.mark.asyncio
    async def test_create_item_requires_image(self, client: AsyncClient):
        """Test that an empty photo upload is a 422."""
        response = await client.post(
            "/api/v1/items",
            files={"image": ("empty.png", b"", "image/png")},
            data={"name": "Tee", "category": "TOPS", "color": "White"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_item_invalid_category(self, client: AsyncClient, png_bytes):
        """Test that an unknown category is a 422."""
        response = await client.post(
            "/api/v1/items",
            files={"image": ("tee.png", png_bytes, "image/png")},
            data={"name": "Tee", "category": "HATS", "color": "White"},
        )
        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "category"

    @pytest.mark.asyncio
    async def test_create_item_unsupported_type(self, client: AsyncClient):
        """Test that an unsupported image type is a 415."""
        response = await client.post(
            "/api/v1/items",
            files={"image": ("tee.bmp", b"BM" + b"\0" * 64, "image/bmp")},
            data={"name": "Tee", "category": "TOPS", "color": "White"},
        )
        assert response.status_code == 415

    @pytest.mark.asyncio
    async def test_create_item_too_large(self, client: AsyncClient, tmp_path, png_bytes):
        """Test that an oversized image is a 413."""
        app.state.image_service = ImageService(
            storage_path=str(tmp_path / "small"), max_size=len(png_bytes) - 1
        )
        response = await client.post(
            "/api/v1/items",
            files={"image": ("tee.png", png_bytes, "image/png")},
            data={"name": "Tee", "category": "TOPS", "color": "White"},
        )
        assert response.status_code == 413

    @pytest.mark.asyncio
    async def test_get_update_delete(self, client: AsyncClient, item_service, sample_item_data):
        """Test reading, updating and deleting an item."""
        item = await item_service.create(sample_item_data)

        response = await client.get(f"/api/v1/items/{item.id}")
        assert response.status_code == 200
        assert response.json()["name"] == "Classic White T-Shirt"

        response = await client.patch(
            f"/api/v1/items/{item.id}", json={"season": "SUMMER", "id": "ignored"}
        )
        assert response.status_code == 200
        assert response.json()["season"] == "SUMMER"
        assert response.json()["id"] == item.id

        response = await client.delete(f"/api/v1/items/{item.id}")
        assert response.status_code == 204

        response = await client.get(f"/api/v1/items/{item.id}")
        assert response.status_code == 404

        response = await client.delete(f"/api/v1/items/{item.id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_patch_rejects_null_name(
        self, client: AsyncClient, item_service, sample_item_data
    ):
        """Test that a null name is rejected."""
        item = await item_service.create(sample_item_data)
        response = await client.patch(f"/api/v1/items/{item.id}", json={"name": None})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_replace_image(self, client: AsyncClient, item_service, image_factory):
        """Test replacing an item's image."""
        item = await item_service.create({"name": "Tee", "category": "TOPS", "color": "Navy"})

        response = await client.put(
            f"/api/v1/items/{item.id}/image",
            files={"image": ("new.jpg", image_factory(image_format="JPEG"), "image/jpeg")},
        )
        assert response.status_code == 200
        assert response.json()["image_url"].endswith(".jpg")

    @pytest.mark.asyncio
    async def test_list_items_with_filters(self, client: AsyncClient, item_service):
        """Test listing items with query filters."""
        await item_service.create({"name": "Tee", "category": "TOPS", "color": "White"})
        await item_service.create({"name": "Boots", "category": "SHOES", "color": "Black"})

        response = await client.get("/api/v1/items", params={"category": "SHOES"})
        assert [i["name"] for i in response.json()] == ["Boots"]

        response = await client.get("/api/v1/items", params={"search": "tee"})
        assert [i["name"] for i in response.json()] == ["Tee"]

        response = await client.get("/api/v1/items", params={"category": "HATS"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_upload_path_traversal(self, client: AsyncClient):
        """Test that upload paths cannot escape the storage root."""
        response = await client.get("/uploads/..%2Fcloset.db")
        assert response.status_code in (400, 404)

        response = await client.get("/uploads/missing.png")
        assert response.status_code == 404
