from typing import Annotated, Any

from fastapi import APIRouter, Depends

from closet.config import get_settings
from closet.database import Database, get_database
from closet.errors import StorageUnavailable

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(
    database: Annotated[Database, Depends(get_database)],
) -> dict[str, Any]:
    checks = {
        "database": "unhealthy",
    }

    try:
        await database.ping()
        checks["database"] = "healthy"
    except StorageUnavailable as e:
        checks["database"] = f"unhealthy: {e.message}"

    overall = "healthy" if all(v == "healthy" for v in checks.values()) else "unhealthy"

    return {
        "status": overall,
        "backend": get_settings().get_backend_name(),
        "checks": checks,
    }
