"""Pydantic contracts for blob storage objects and the blob utility endpoints.

Responses reuse the camelCase keys of the storage API (``uploadedAt``,
``contentType``) that the admin dashboard reads.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.schemas.cleanup import CamelModel


class BlobObject(CamelModel):
    url: str
    pathname: str = ""
    uploaded_at: datetime
    size: int = 0
    content_type: str = "unknown"


class BlobListPage(BaseModel):
    blobs: list[BlobObject] = []
    cursor: Optional[str] = None
    has_more: bool = False


class BlobListOut(CamelModel):
    success: bool = True
    blobs: list[BlobObject]
    total: int


class DeleteBlobRequest(BaseModel):
    url: Optional[str] = None


class DeleteBlobOut(BaseModel):
    success: bool
    message: str


class BlobAvailabilityOut(CamelModel):
    available: bool
    single_video_upload_only: bool
