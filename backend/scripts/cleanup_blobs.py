"""Reconcile blob storage against the database outside of HTTP.

Usage:
  python scripts/cleanup_blobs.py                          # orphaned, delete
  python scripts/cleanup_blobs.py orphaned --dry-run       # report only
  python scripts/cleanup_blobs.py all --keep-count=5
  python scripts/cleanup_blobs.py old --older-than-minutes=120 --limit=500
"""
import argparse
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import SessionLocal
from app.services import blob_cleanup_service
from app.services.blob_store import BlobStoreError, get_blob_store

PREVIEW_COUNT = 10


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("mode", nargs="?", default="orphaned", choices=blob_cleanup_service.CLEANUP_MODES)
    parser.add_argument("--dry-run", "--dryRun", dest="dry_run", action="store_true", help="Only report candidates")
    parser.add_argument("--keep-count", "--keepCount", dest="keep_count", type=int, default=1)
    parser.add_argument("--older-than-minutes", "--olderThanMinutes", dest="older_than_minutes", type=int, default=60)
    parser.add_argument("--limit", type=int, default=1000)
    args = parser.parse_args()

    store = get_blob_store()
    if store is None:
        print("BLOB_READ_WRITE_TOKEN is not set; nothing to clean up.")
        return 0

    db = SessionLocal()
    try:
        result = blob_cleanup_service.cleanup_blobs(
            db,
            store,
            dry_run=args.dry_run,
            limit=args.limit,
            mode=args.mode,
            keep_count=args.keep_count,
            older_than_minutes=args.older_than_minutes,
        )
    except BlobStoreError as exc:
        print(f"Blob cleanup failed: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    summary = result.summary
    print("Blob cleanup result")
    print(f"  mode: {result.mode}")
    print(f"  dry_run: {result.dry_run}")
    print(f"  total_blobs_in_storage: {summary.total_blobs_in_storage}")
    if summary.referenced_blobs is not None:
        print(f"  referenced_blobs: {summary.referenced_blobs}")
    if summary.kept is not None:
        print(f"  kept: {summary.kept}")
    print(f"  blobs_to_delete: {summary.blobs_to_delete}")

    if result.blobs_to_delete:
        now = datetime.now(timezone.utc)
        print("  candidates:")
        for blob in result.blobs_to_delete[:PREVIEW_COUNT]:
            age_minutes = round((now - blob.uploaded_at).total_seconds() / 60)
            print(f"    - {blob.pathname or blob.url} ({age_minutes} min ago)")
        if len(result.blobs_to_delete) > PREVIEW_COUNT:
            print(f"    ... and {len(result.blobs_to_delete) - PREVIEW_COUNT} more")

    if not result.dry_run:
        print(f"  deleted: {summary.deleted}")
        print(f"  failed: {summary.failed}")
        for row in result.deletion_results or []:
            if not row.success:
                print(f"    ! {row.url}: {row.error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
