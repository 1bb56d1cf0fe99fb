"""SQLAlchemy model package initialization."""

from app.models.admin_user import AdminUser
from app.models.image import Image, ImageChunk
from app.models.media import Media
from app.models.draft import Draft

__all__ = [
    "AdminUser",
    "Image", "ImageChunk",
    "Media",
    "Draft",
]
