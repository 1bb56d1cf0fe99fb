"""SQLAlchemy models for database-stored images and their upload chunks."""

from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from sqlalchemy.sql import func
from app.database import Base


class Image(Base):
    __tablename__ = "images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    data = Column(Text, nullable=False, default="")  # base64, empty when stored as blob
    url = Column(Text, nullable=True)  # blob URL when the bytes live in object storage
    created_at = Column(DateTime, server_default=func.now())


class ImageChunk(Base):
    __tablename__ = "image_chunks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # No FK constraint: chunks can outlive an aborted or deleted parent image.
    image_id = Column(Integer, nullable=False)
    chunk_index = Column(Integer, nullable=False, default=0)
    data = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("idx_image_chunks_image", "image_id", "chunk_index"),
    )
