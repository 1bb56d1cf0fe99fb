from typing import Any, Optional

from pydantic import BaseModel


class DraftSaveRequest(BaseModel):
    route: str
    data: dict[str, Any]
    version: int = 1


class DraftSaveOut(BaseModel):
    key: str
    pending: bool


class DraftMetaOut(BaseModel):
    saved_at: int
    version: int
    route: str


class DraftOut(BaseModel):
    has_draft: bool
    data: Optional[dict[str, Any]] = None
    meta: Optional[DraftMetaOut] = None
