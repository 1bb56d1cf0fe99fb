"""Blob reconciler domain service.

Compares the objects in blob storage with the URLs referenced by the ``images``
and ``media`` tables and optionally deletes the unreferenced ones. Storage and
database are snapshotted one after the other without any isolation between
the two reads: an object referenced a moment after the scan may still be
reported (and deleted) as orphaned.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.image import Image
from app.models.media import Media
from app.schemas.blob import BlobObject
from app.schemas.cleanup import (
    BlobCandidateOut,
    BlobStatsOut,
    BlobStatsSummaryOut,
    CleanupBlobsOut,
    CleanupSkippedOut,
    CleanupSummaryOut,
    DeletionResultOut,
)
from app.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

MODE_ORPHANED = "orphaned"
MODE_ALL = "all"
MODE_OLD = "old"
CLEANUP_MODES = (MODE_ORPHANED, MODE_ALL, MODE_OLD)

STATS_PREVIEW_LIMIT = 100
MAX_FALLBACK_WORKERS = 10
NOT_CONFIGURED_MESSAGE = "Blob storage is not configured; nothing to clean up."


def is_blob_url(url: str | None) -> bool:
    if not url:
        return False
    return url.startswith("https://") and settings.BLOB_URL_HOST in url


def _collect_blob_urls(urls: Iterable[str | None]) -> set[str]:
    return {url for url in urls if is_blob_url(url)}


def collect_referenced_blob_urls(db: Session) -> set[str]:
    referenced: set[str] = set()
    referenced.update(_collect_blob_urls(row[0] for row in db.query(Image.url).all()))
    referenced.update(_collect_blob_urls(row[0] for row in db.query(Media.url).all()))
    return referenced


def list_blobs(store: BlobStore, limit: int) -> list[BlobObject]:
    """Page through storage until the backend runs out or ``limit`` objects were seen.

    Pages are requested one at a time. Any ``BlobStoreError`` propagates and
    discards what was collected so far.
    """
    collected: list[BlobObject] = []
    cursor: Optional[str] = None
    while len(collected) < limit:
        page_size = min(settings.BLOB_LIST_PAGE_SIZE, limit - len(collected))
        page = store.list(limit=page_size, cursor=cursor)
        for blob in page.blobs:
            collected.append(blob)
            if len(collected) >= limit:
                break
        if not page.cursor or page.cursor == cursor:
            break
        cursor = page.cursor
    return collected


def find_orphaned_blobs(blobs: list[BlobObject], referenced: set[str]) -> list[BlobObject]:
    return [blob for blob in blobs if blob.url not in referenced]


def select_blobs_to_delete(
    blobs: list[BlobObject],
    mode: str,
    *,
    referenced: set[str] | None = None,
    keep_count: int = 1,
    older_than_minutes: int = 60,
    now: datetime | None = None,
) -> list[BlobObject]:
    if mode == MODE_ORPHANED:
        return find_orphaned_blobs(blobs, referenced or set())
    if mode == MODE_ALL:
        newest_first = sorted(blobs, key=lambda blob: blob.uploaded_at, reverse=True)
        return newest_first[max(0, keep_count):]
    if mode == MODE_OLD:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(minutes=older_than_minutes)
        return [blob for blob in blobs if blob.uploaded_at < cutoff]
    raise ValueError(f"Unsupported cleanup mode: {mode}")


def _delete_one(store: BlobStore, url: str) -> dict[str, Any]:
    try:
        store.delete([url])
    except Exception as exc:
        logger.warning("[blob-cleanup] failed to delete %s: %s", url, exc)
        return {"url": url, "success": False, "error": str(exc) or "Unknown error"}
    return {"url": url, "success": True, "error": None}


def _delete_batch(store: BlobStore, urls: list[str]) -> list[dict[str, Any]]:
    try:
        store.delete(urls)
        return [{"url": url, "success": True, "error": None} for url in urls]
    except Exception as exc:
        logger.warning(
            "[blob-cleanup] bulk delete of %d blobs failed, retrying individually: %s",
            len(urls),
            exc,
        )

    # Every item is attempted and recorded even when its neighbours fail.
    workers = max(1, min(len(urls), MAX_FALLBACK_WORKERS))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="blob-delete") as pool:
        futures = [pool.submit(_delete_one, store, url) for url in urls]
        return [future.result() for future in futures]


def delete_blobs(
    store: BlobStore,
    candidates: list[BlobObject],
    *,
    dry_run: bool,
    batch_size: int | None = None,
    delay_seconds: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, Any]:
    """Delete ``candidates`` in fixed-size batches.

    Returns ``candidates`` untouched on a dry run. Otherwise returns one result
    per candidate plus ``succeeded``/``failed``/``total`` counts, where
    ``succeeded + failed == total == len(candidates)``.
    """
    if dry_run:
        return {"dry_run": True, "candidates": candidates, "results": [], "succeeded": 0, "failed": 0, "total": 0}

    size = max(1, int(batch_size or settings.BLOB_DELETE_BATCH_SIZE))
    delay = settings.BLOB_DELETE_BATCH_DELAY_SECONDS if delay_seconds is None else delay_seconds

    results: list[dict[str, Any]] = []
    for start in range(0, len(candidates), size):
        batch = [blob.url for blob in candidates[start:start + size]]
        results.extend(_delete_batch(store, batch))
        if start + size < len(candidates) and delay > 0:
            sleep(delay)

    succeeded = sum(1 for row in results if row["success"])
    return {
        "dry_run": False,
        "candidates": candidates,
        "results": results,
        "succeeded": succeeded,
        "failed": len(results) - succeeded,
        "total": len(results),
    }


def skipped_response() -> CleanupSkippedOut:
    return CleanupSkippedOut(message=NOT_CONFIGURED_MESSAGE, deleted=0, skipped=0)


def cleanup_blobs(
    db: Session,
    store: BlobStore,
    *,
    dry_run: bool = False,
    limit: int = 1000,
    mode: str = MODE_ORPHANED,
    keep_count: int = 1,
    older_than_minutes: int = 60,
    now: datetime | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CleanupBlobsOut:
    if mode not in CLEANUP_MODES:
        raise ValueError(f"Unsupported cleanup mode: {mode}")

    logger.info("[blob-cleanup] starting (dry_run=%s, mode=%s, limit=%s)", dry_run, mode, limit)

    referenced: set[str] = set()
    if mode == MODE_ORPHANED:
        referenced = collect_referenced_blob_urls(db)
        logger.info("[blob-cleanup] %d referenced blob urls in database", len(referenced))

    blobs = list_blobs(store, limit)
    logger.info("[blob-cleanup] %d blobs in storage", len(blobs))

    candidates = select_blobs_to_delete(
        blobs,
        mode,
        referenced=referenced,
        keep_count=keep_count,
        older_than_minutes=older_than_minutes,
        now=now,
    )
    logger.info("[blob-cleanup] %d blobs selected for deletion", len(candidates))

    outcome = delete_blobs(store, candidates, dry_run=dry_run, sleep=sleep)
    if not dry_run:
        logger.info(
            "[blob-cleanup] deleted %d, failed %d of %d",
            outcome["succeeded"],
            outcome["failed"],
            outcome["total"],
        )

    summary = CleanupSummaryOut(
        total_blobs_in_storage=len(blobs),
        referenced_blobs=len(referenced) if mode == MODE_ORPHANED else None,
        blobs_to_delete=len(candidates),
        deleted=0 if dry_run else outcome["succeeded"],
        failed=0 if dry_run else outcome["failed"],
        kept=min(max(0, keep_count), len(blobs)) if mode == MODE_ALL else None,
    )
    return CleanupBlobsOut(
        dry_run=dry_run,
        mode=mode,
        summary=summary,
        blobs_to_delete=[
            BlobCandidateOut(url=blob.url, pathname=blob.pathname, uploaded_at=blob.uploaded_at)
            for blob in candidates
        ] if dry_run else None,
        deletion_results=None if dry_run else [DeletionResultOut(**row) for row in outcome["results"]],
    )


def get_blob_stats(db: Session, store: BlobStore, *, limit: int = 1000) -> BlobStatsOut:
    referenced = collect_referenced_blob_urls(db)
    blobs = list_blobs(store, limit)
    orphaned = [blob.url for blob in find_orphaned_blobs(blobs, referenced)]
    return BlobStatsOut(
        summary=BlobStatsSummaryOut(
            total_blobs_in_storage=len(blobs),
            referenced_blobs=len(referenced),
            orphaned_blobs=len(orphaned),
        ),
        orphaned_blobs=orphaned[:STATS_PREVIEW_LIMIT],
    )
