"""Centralized application settings loaded from environment variables."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./isyn_admin.db"
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = True
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # JWT
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60

    # Blob storage (Vercel Blob compatible API)
    BLOB_READ_WRITE_TOKEN: str = ""
    BLOB_API_URL: str = "https://blob.vercel-storage.com"
    BLOB_API_VERSION: str = "7"
    BLOB_URL_HOST: str = "blob.vercel-storage.com"
    BLOB_TIMEOUT_SECONDS: float = 30.0
    BLOB_LIST_PAGE_SIZE: int = 100
    BLOB_DELETE_BATCH_SIZE: int = 50
    BLOB_DELETE_BATCH_DELAY_SECONDS: float = 0.1
    SINGLE_VIDEO_UPLOAD: bool = False
    DISABLE_CHUNKED_VIDEO_UPLOAD: bool = False

    # Admin dashboard cache
    AUTH_CACHE_TTL_SECONDS: int = 30 * 60

    # Draft autosave
    DRAFT_DEBOUNCE_SECONDS: float = 0.5

    def blob_storage_configured(self) -> bool:
        return bool(str(self.BLOB_READ_WRITE_TOKEN or "").strip())

    def single_video_upload_only(self) -> bool:
        return bool(self.SINGLE_VIDEO_UPLOAD or self.DISABLE_CHUNKED_VIDEO_UPLOAD)

    class Config:
        # Load backend/.env regardless of the working directory.
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
