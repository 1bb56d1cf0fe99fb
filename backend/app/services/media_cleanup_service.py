"""Media Cleanup domain service. Removes rows whose referenced image row no longer exists."""

import logging
import re
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.models.image import Image, ImageChunk
from app.models.media import Media
from app.schemas.cleanup import MediaCleanupOut

logger = logging.getLogger(__name__)

INTERNAL_IMAGE_URL_RE = re.compile(r"/api/images/(\d+)")

CLEANUP_NOTE = (
    "Deletes media rows pointing to a missing /api/images/:id and image_chunks rows "
    "whose parent image no longer exists. Images that other tables may still "
    "reference are never deleted."
)


def _image_exists(db: Session, image_id: int) -> bool:
    return db.query(Image.id).filter(Image.id == image_id).first() is not None


def _referenced_image_id(url: str | None) -> int | None:
    if not url or not isinstance(url, str):
        return None
    match = INTERNAL_IMAGE_URL_RE.search(url)
    if not match:
        return None
    return int(match.group(1))


def delete_orphan_media(db: Session) -> list[int]:
    deleted_ids: list[int] = []
    rows = db.query(Media).filter(Media.url.like("/api/images/%")).all()
    for row in rows:
        image_id = _referenced_image_id(row.url)
        if image_id is None or _image_exists(db, image_id):
            continue
        deleted_ids.append(row.id)
        db.delete(row)
    db.commit()
    return deleted_ids


def delete_orphan_chunks(db: Session) -> list[int]:
    deleted_ids: list[int] = []
    rows = db.query(ImageChunk.id, ImageChunk.image_id).all()
    for chunk_id, image_id in rows:
        if _image_exists(db, image_id):
            continue
        db.query(ImageChunk).filter(ImageChunk.id == chunk_id).delete(synchronize_session=False)
        deleted_ids.append(chunk_id)
    db.commit()
    return deleted_ids


def cleanup_orphan_media(db: Session) -> MediaCleanupOut:
    started_at = datetime.now(timezone.utc)
    orphan_media_ids = delete_orphan_media(db)
    orphan_chunk_ids = delete_orphan_chunks(db)
    finished_at = datetime.now(timezone.utc)

    logger.info(
        "[media-cleanup] removed %d orphan media rows and %d orphan image chunks",
        len(orphan_media_ids),
        len(orphan_chunk_ids),
    )
    return MediaCleanupOut(
        started_at=started_at,
        finished_at=finished_at,
        orphan_media_deleted=len(orphan_media_ids),
        orphan_media_ids=orphan_media_ids,
        orphan_chunks_deleted=len(orphan_chunk_ids),
        orphan_chunk_ids=orphan_chunk_ids,
        note=CLEANUP_NOTE,
    )
