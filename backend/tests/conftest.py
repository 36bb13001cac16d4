import os
import tempfile

# Set test environment
os.environ["DEBUG"] = "true"
os.environ["STORAGE_PATH"] = os.path.join(tempfile.gettempdir(), "closet_test_uploads")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AI_BASE_URL"] = ""

from collections.abc import AsyncGenerator
from io import BytesIO
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

from closet.database import Database
from closet.main import app
from closet.services.image_service import ImageService
from closet.services.item_service import ItemService
from closet.services.outfit_service import OutfitService


def make_image(color: str = "navy", image_format: str = "PNG", mode: str = "RGB") -> bytes:
    """Encode a small solid-color image."""
    image = Image.new(mode, (8, 8), color)
    output = BytesIO()
    image.save(output, format=image_format)
    return output.getvalue()


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """An opened, empty SQLite catalog for each test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'closet.db'}")
    await db.open()

    yield db

    await db.close()


@pytest.fixture
def image_service(tmp_path) -> ImageService:
    return ImageService(storage_path=str(tmp_path / "uploads"), mode="filesystem")


@pytest.fixture
def item_service(database: Database, image_service: ImageService) -> ItemService:
    return ItemService(database, image_service)


@pytest.fixture
def outfit_service(database: Database) -> OutfitService:
    return OutfitService(database)


@pytest_asyncio.fixture(scope="function")
async def client(
    database: Database, image_service: ImageService
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client bound to the test database."""
    app.state.database = database
    app.state.image_service = image_service
    app.state.ai_service = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.ai_service = None


@pytest.fixture
def png_bytes() -> bytes:
    return make_image()


@pytest.fixture
def image_factory():
    return make_image


@pytest.fixture
def sample_item_data() -> dict[str, Any]:
    """Sample data for creating a clothing item."""
    return {
        "name": "Classic White T-Shirt",
        "category": "TOPS",
        "color": "White",
        "brand": "Basic Brand",
        "season": "ALL_SEASON",
        "fit": "REGULAR",
        "material": "Cotton",
        "tags": ["casual", "essential"],
    }
