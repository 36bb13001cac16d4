from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from closet.api.deps import get_outfit_service
from closet.schemas.outfit import OutfitCreate, OutfitResponse, OutfitUpdate
from closet.services.outfit_service import OutfitService

router = APIRouter(prefix="/outfits", tags=["Outfits"])


@router.get("", response_model=list[OutfitResponse])
async def list_outfits(
    service: Annotated[OutfitService, Depends(get_outfit_service)],
) -> list[OutfitResponse]:
    return await service.get_list()


@router.post("", response_model=OutfitResponse, status_code=status.HTTP_201_CREATED)
async def create_outfit(
    outfit_data: OutfitCreate,
    service: Annotated[OutfitService, Depends(get_outfit_service)],
) -> OutfitResponse:
    return await service.create(outfit_data)


@router.get("/{outfit_id}", response_model=OutfitResponse)
async def get_outfit(
    outfit_id: str,
    service: Annotated[OutfitService, Depends(get_outfit_service)],
) -> OutfitResponse:
    outfit = await service.get(outfit_id)
    if outfit is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Outfit not found",
        )
    return outfit


@router.put("/{outfit_id}", response_model=OutfitResponse)
@router.patch("/{outfit_id}", response_model=OutfitResponse)
async def update_outfit(
    outfit_id: str,
    outfit_data: OutfitUpdate,
    service: Annotated[OutfitService, Depends(get_outfit_service)],
) -> OutfitResponse:
    return await service.update(outfit_id, outfit_data)


@router.delete("/{outfit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_outfit(
    outfit_id: str,
    service: Annotated[OutfitService, Depends(get_outfit_service)],
) -> Response:
    await service.delete(outfit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
