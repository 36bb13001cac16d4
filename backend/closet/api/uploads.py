import mimetypes
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from closet.api.deps import get_image_service
from closet.services.image_service import UPLOAD_URL_PREFIX, ImageService

router = APIRouter(prefix="/uploads", tags=["Images"])


@router.get("/{filename}")
async def get_upload(
    filename: str,
    images: Annotated[ImageService, Depends(get_image_service)],
) -> FileResponse:
    image_path = images.get_image_path(f"{UPLOAD_URL_PREFIX}{filename}")

    if image_path is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid path",
        )

    if not image_path.exists():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Image not found",
        )

    return FileResponse(
        path=str(image_path),
        media_type=mimetypes.guess_type(image_path.name)[0] or "application/octet-stream",
        headers={"Cache-Control": "private, max-age=31536000"},
    )
