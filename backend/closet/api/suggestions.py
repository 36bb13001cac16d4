import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from closet.api.deps import get_ai_service, get_item_service
from closet.schemas.suggestion import SuggestionResponse
from closet.services.ai_service import AIService
from closet.services.item_service import ItemService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/outfit-suggest", response_model=SuggestionResponse)
async def suggest_outfits(
    items: Annotated[ItemService, Depends(get_item_service)],
    ai_service: Annotated[AIService, Depends(get_ai_service)],
) -> SuggestionResponse:
    catalog = await items.get_list()
    outfits = await ai_service.suggest_outfits(catalog)
    logger.info("Returning %d outfit suggestion(s) from %d item(s)", len(outfits), len(catalog))
    return SuggestionResponse(outfits=outfits)
