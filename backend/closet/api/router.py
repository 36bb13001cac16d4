from fastapi import APIRouter

from closet.api.health import router as health_router
from closet.api.items import router as items_router
from closet.api.outfits import router as outfits_router
from closet.api.suggestions import router as suggestions_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(items_router)
api_router.include_router(outfits_router)
api_router.include_router(suggestions_router)
