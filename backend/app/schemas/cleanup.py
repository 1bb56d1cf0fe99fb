"""Request/response contracts for the blob reconciler and media cleanup endpoints.

The blob cleanup payloads keep the camelCase keys the admin dashboard already
consumes, so those models serialize by alias.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BlobCandidateOut(CamelModel):
    url: str
    pathname: str
    uploaded_at: datetime


class DeletionResultOut(CamelModel):
    url: str
    success: bool
    error: Optional[str] = None


class CleanupSummaryOut(CamelModel):
    total_blobs_in_storage: int
    referenced_blobs: Optional[int] = None
    blobs_to_delete: int
    deleted: int
    failed: int
    kept: Optional[int] = None


class CleanupBlobsOut(CamelModel):
    success: bool = True
    dry_run: bool
    mode: str
    summary: CleanupSummaryOut
    blobs_to_delete: Optional[list[BlobCandidateOut]] = None
    deletion_results: Optional[list[DeletionResultOut]] = None


class CleanupSkippedOut(CamelModel):
    success: bool = True
    message: str
    deleted: int = 0
    skipped: int = 0


class BlobStatsSummaryOut(CamelModel):
    total_blobs_in_storage: int
    referenced_blobs: int
    orphaned_blobs: int


class BlobStatsOut(CamelModel):
    success: bool = True
    summary: BlobStatsSummaryOut
    orphaned_blobs: list[str]


class MediaCleanupOut(CamelModel):
    success: bool = True
    started_at: datetime
    finished_at: datetime
    orphan_media_deleted: int
    orphan_media_ids: list[int]
    orphan_chunks_deleted: int
    orphan_chunk_ids: list[int]
    note: str
