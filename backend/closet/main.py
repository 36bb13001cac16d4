import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from closet.api.router import api_router
from closet.api.uploads import router as uploads_router
from closet.config import get_settings
from closet.database import Database
from closet.errors import (
    AIUnavailable,
    ClosetError,
    DuplicateKey,
    NotFound,
    PayloadTooLarge,
    StorageUnavailable,
    SuggestionRejected,
    UnsupportedMediaType,
)
from closet.errors import ValidationError as ClosetValidationError
from closet.services.image_service import ImageService

settings = get_settings()
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ClosetValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    DuplicateKey: status.HTTP_409_CONFLICT,
    UnsupportedMediaType: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    PayloadTooLarge: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    StorageUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    AIUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    SuggestionRejected: status.HTTP_502_BAD_GATEWAY,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(level=settings.log_level.upper())
    settings.validate_storage()

    database = Database(
        settings.database_url,
        echo=settings.database_echo,
        connect_timeout=settings.database_connect_timeout,
    )
    await database.open()
    logger.info(
        "Storage backend: %s, image storage: %s",
        settings.get_backend_name(),
        settings.storage_mode,
    )

    app.state.database = database
    app.state.image_service = ImageService()
    yield
    await database.close()


app = FastAPI(
    title=settings.app_name,
    description="Personal wardrobe catalog with AI outfit suggestions",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Enable GZip compression for responses > 500 bytes
app.add_middleware(GZipMiddleware, minimum_size=500)
app.include_router(api_router, prefix="/api/v1")
app.include_router(uploads_router)


# Global exception handlers
@app.exception_handler(ClosetError)
async def closet_error_handler(request: Request, exc: ClosetError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)

    content = {"detail": exc.message}
    if isinstance(exc, ClosetValidationError) and exc.field:
        content["errors"] = [{"field": exc.field, "message": exc.message}]
    return JSONResponse(status_code=status_code, content=content)


def validation_response(exc: RequestValidationError | ValidationError) -> JSONResponse:
    errors = [
        {"field": " -> ".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation error", "errors": errors},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return validation_response(exc)


@app.exception_handler(ValidationError)
async def pydantic_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return validation_response(exc)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An unexpected error occurred. Please try again later.",
        },
    )
