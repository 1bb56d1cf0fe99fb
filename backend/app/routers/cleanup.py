"""Storage maintenance API router: blob reconciliation and media row cleanup."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_admin
from app.models.admin_user import AdminUser
from app.services import blob_cleanup_service, media_cleanup_service
from app.services.blob_store import BlobStore, BlobStoreError, get_blob_store
from app.utils.api_error import internal_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["cleanup"])


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/cleanup-blobs")
def cleanup_blobs(
    dry_run: bool = Query(False, alias="dryRun"),
    limit: int = Query(1000, ge=1),
    mode: str = Query(blob_cleanup_service.MODE_ORPHANED),
    keep_count: int = Query(1, alias="keepCount", ge=0),
    older_than_minutes: int = Query(60, alias="olderThanMinutes", ge=0),
    db: Session = Depends(get_db),
    store: Optional[BlobStore] = Depends(get_blob_store),
    _current_admin: AdminUser = Depends(get_current_admin),
):
    if store is None:
        return _dump(blob_cleanup_service.skipped_response())
    if mode not in blob_cleanup_service.CLEANUP_MODES:
        raise HTTPException(
            status_code=400,
            detail=f"mode must be one of: {', '.join(blob_cleanup_service.CLEANUP_MODES)}",
        )

    try:
        result = blob_cleanup_service.cleanup_blobs(
            db,
            store,
            dry_run=dry_run,
            limit=limit,
            mode=mode,
            keep_count=keep_count,
            older_than_minutes=older_than_minutes,
        )
    except BlobStoreError as exc:
        logger.error("[blob-cleanup] cleanup aborted: %s", exc)
        return internal_error("Failed to cleanup blobs", exc)

    return _dump(result)


@router.get("/cleanup-blobs")
def blob_stats(
    limit: int = Query(1000, ge=1),
    db: Session = Depends(get_db),
    store: Optional[BlobStore] = Depends(get_blob_store),
    _current_admin: AdminUser = Depends(get_current_admin),
):
    if store is None:
        return _dump(blob_cleanup_service.skipped_response())

    try:
        stats = blob_cleanup_service.get_blob_stats(db, store, limit=limit)
    except BlobStoreError as exc:
        logger.error("[blob-cleanup] statistics failed: %s", exc)
        return internal_error("Failed to get blob statistics", exc)
    return _dump(stats)


@router.post("/media-cleanup")
def media_cleanup(
    db: Session = Depends(get_db),
    _current_admin: AdminUser = Depends(get_current_admin),
):
    return _dump(media_cleanup_service.cleanup_orphan_media(db))
