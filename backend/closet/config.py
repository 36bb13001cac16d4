import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

STORAGE_MODES = {"filesystem", "inline"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Closet Catalog"
    debug: bool = False
    log_level: str = Field(default="INFO")

    # CORS
    cors_origins: list[str] = Field(default=["http://localhost:3000"])

    # Database
    # sqlite+aiosqlite for the local embedded store, postgresql+asyncpg for a server
    database_url: str = Field(default="sqlite+aiosqlite:///./data/closet.db")
    database_echo: bool = False
    database_connect_timeout: float = Field(default=10.0)

    # Storage
    # "filesystem" writes uploads under storage_path, "inline" keeps base64 data URLs
    storage_mode: str = Field(default="filesystem")
    storage_path: str = Field(default="./data/uploads")
    max_upload_size_bytes: int = Field(default=5 * 1024 * 1024)

    # Image processing
    image_quality: int = 90

    # AI Service (OpenAI-compatible API)
    ai_base_url: str = Field(default="")
    ai_api_key: str | None = Field(default=None)
    ai_vision_model: str = Field(default="gpt-4o-mini")
    ai_text_model: str = Field(default="gpt-4o-mini")
    ai_timeout: int = Field(default=120)
    ai_max_retries: int = Field(default=3)
    ai_use_vision: bool = True

    def validate_storage(self) -> None:
        if self.storage_mode not in STORAGE_MODES:
            raise RuntimeError(
                f"STORAGE_MODE must be one of {sorted(STORAGE_MODES)}, got {self.storage_mode!r}"
            )

    def get_backend_name(self) -> str:
        if self.database_url.startswith("sqlite"):
            return "embedded"
        return "relational"


@lru_cache
def get_settings() -> Settings:
    return Settings()
