"""Service layer package initialization."""

from app.services import (
    auth_service,
    blob_store,
    blob_cleanup_service,
    media_cleanup_service,
    cache_service,
    draft_service,
)
