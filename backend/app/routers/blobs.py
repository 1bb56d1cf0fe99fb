"""Blob storage utility API router: listing, single deletion and availability."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.config import settings
from app.middleware.auth_middleware import get_current_admin
from app.models.admin_user import AdminUser
from app.schemas.blob import BlobAvailabilityOut, BlobListOut, DeleteBlobOut, DeleteBlobRequest
from app.services.blob_cleanup_service import is_blob_url, list_blobs
from app.services.blob_store import BlobStore, BlobStoreError, get_blob_store
from app.utils.api_error import internal_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["blobs"])


@router.get("/blobs", response_model=BlobListOut)
def get_blobs(
    limit: int = Query(100, ge=1),
    store: Optional[BlobStore] = Depends(get_blob_store),
    _current_admin: AdminUser = Depends(get_current_admin),
):
    if store is None:
        return BlobListOut(blobs=[], total=0)
    try:
        blobs = list_blobs(store, limit)
    except BlobStoreError as exc:
        logger.error("[blobs] listing failed: %s", exc)
        return internal_error("Failed to list blobs", exc)
    newest_first = sorted(blobs, key=lambda blob: blob.uploaded_at, reverse=True)
    return BlobListOut(blobs=newest_first, total=len(newest_first))


@router.delete("/delete-blob", response_model=DeleteBlobOut)
def delete_blob(
    data: DeleteBlobRequest,
    store: Optional[BlobStore] = Depends(get_blob_store),
    current_admin: AdminUser = Depends(get_current_admin),
):
    url = (data.url or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail="url is required and must be a string")
    if not is_blob_url(url):
        raise HTTPException(status_code=400, detail="Invalid blob URL. Only blob storage URLs can be deleted.")
    if store is None:
        raise HTTPException(status_code=503, detail="Blob storage is not configured")

    try:
        store.delete([url])
    except BlobStoreError as exc:
        logger.error("[blobs] manual delete of %s failed: %s", url, exc)
        return internal_error("Failed to delete blob", exc)

    logger.info("[blobs] %s deleted blob %s", current_admin.username, url)
    return DeleteBlobOut(success=True, message="Blob deleted successfully")


@router.get("/blob-available", response_model=BlobAvailabilityOut)
def blob_available(_current_admin: AdminUser = Depends(get_current_admin)):
    return BlobAvailabilityOut(
        available=settings.blob_storage_configured(),
        single_video_upload_only=settings.single_video_upload_only(),
    )
