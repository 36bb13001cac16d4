from typing import Annotated

from fastapi import Depends, Request, UploadFile

from closet.database import Database, get_database
from closet.services.ai_service import AIService
from closet.services.image_service import ImageService, ImageUpload
from closet.services.item_service import ItemService
from closet.services.outfit_service import OutfitService


def get_image_service(request: Request) -> ImageService:
    return request.app.state.image_service


def get_item_service(
    database: Annotated[Database, Depends(get_database)],
    images: Annotated[ImageService, Depends(get_image_service)],
) -> ItemService:
    return ItemService(database, images)


def get_outfit_service(
    database: Annotated[Database, Depends(get_database)],
) -> OutfitService:
    return OutfitService(database)


def get_ai_service(
    request: Request,
    images: Annotated[ImageService, Depends(get_image_service)],
) -> AIService:
    # A service installed on app.state takes precedence
    service = getattr(request.app.state, "ai_service", None)
    if service is not None:
        return service
    return AIService(images)


async def read_upload(upload: UploadFile) -> ImageUpload:
    content = await upload.read()
    return ImageUpload(
        data=content,
        content_type=upload.content_type or "application/octet-stream",
    )
