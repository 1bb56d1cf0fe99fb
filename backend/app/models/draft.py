"""Persisted admin form drafts (autosave backend)."""

from sqlalchemy import Column, Integer, String, Text, BigInteger
from app.database import Base


class Draft(Base):
    __tablename__ = "drafts"

    draft_key = Column(String(255), primary_key=True)
    entity = Column(String(100), nullable=False)
    entity_id = Column(String(100), nullable=False)
    route = Column(String(255), nullable=False)
    data = Column(Text, nullable=False)  # JSON
    version = Column(Integer, nullable=False, default=1)
    saved_at = Column(BigInteger, nullable=False)  # epoch milliseconds
