import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status

from closet.api.deps import get_item_service, read_upload
from closet.errors import ValidationError
from closet.models.item import Category, Season
from closet.schemas.item import ItemFilter, ItemResponse, ItemUpdate
from closet.services.item_service import ItemService
from closet.services.tags import parse_tag_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["Items"])


@router.get("", response_model=list[ItemResponse])
async def list_items(
    service: Annotated[ItemService, Depends(get_item_service)],
    category: Category | None = None,
    season: Season | None = None,
    color: str | None = None,
    search: str | None = None,
) -> list[ItemResponse]:
    filters = ItemFilter(category=category, season=season, color=color, search=search)
    return await service.get_list(filters)


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    service: Annotated[ItemService, Depends(get_item_service)],
    image: UploadFile = File(...),
    name: str = Form(...),
    category: str = Form(...),
    color: str = Form(...),
    season: str | None = Form(None),
    fit: str | None = Form(None),
    brand: str | None = Form(None),
    material: str | None = Form(None),
    tags: str | None = Form(None),  # comma-separated
) -> ItemResponse:
    upload = await read_upload(image)
    if not upload.size:
        raise ValidationError("Image file is required", "image")

    item_data = {
        "name": name,
        "category": category,
        "color": color,
        "fit": fit,
        "brand": brand,
        "material": material,
        "tags": parse_tag_string(tags),
    }
    if season:
        item_data["season"] = season

    return await service.create(item_data, image=upload)


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: str,
    service: Annotated[ItemService, Depends(get_item_service)],
) -> ItemResponse:
    item = await service.get(item_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found",
        )
    return item


@router.patch("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str,
    item_data: ItemUpdate,
    service: Annotated[ItemService, Depends(get_item_service)],
) -> ItemResponse:
    return await service.update(item_id, item_data)


@router.put("/{item_id}/image", response_model=ItemResponse)
async def replace_item_image(
    item_id: str,
    service: Annotated[ItemService, Depends(get_item_service)],
    image: UploadFile = File(...),
) -> ItemResponse:
    upload = await read_upload(image)
    if not upload.size:
        raise ValidationError("Image file is required", "image")
    return await service.update(item_id, {}, image=upload)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    service: Annotated[ItemService, Depends(get_item_service)],
) -> Response:
    await service.delete(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
