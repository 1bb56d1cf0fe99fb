"""Admin form draft autosave API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.middleware.auth_middleware import get_current_admin
from app.models.admin_user import AdminUser
from app.schemas.draft import DraftOut, DraftSaveOut, DraftSaveRequest
from app.services.draft_service import DraftStore, get_draft_store

router = APIRouter(prefix="/api/admin/drafts", tags=["drafts"])


@router.put("/{entity}/{entity_id}", response_model=DraftSaveOut)
def save_draft(
    entity: str,
    entity_id: str,
    data: DraftSaveRequest,
    drafts: DraftStore = Depends(get_draft_store),
    _current_admin: AdminUser = Depends(get_current_admin),
):
    key = drafts.save(entity, entity_id, data.route, data.data, version=data.version)
    return DraftSaveOut(key=key, pending=drafts.has_pending(key))


@router.get("/{entity}/{entity_id}", response_model=DraftOut)
def restore_draft(
    entity: str,
    entity_id: str,
    route: str,
    version: int = 1,
    server_updated_at: Optional[int] = Query(None, alias="serverUpdatedAt"),
    drafts: DraftStore = Depends(get_draft_store),
    _current_admin: AdminUser = Depends(get_current_admin),
):
    found = drafts.restore(entity, entity_id, route, version=version, server_updated_at=server_updated_at)
    if found is None:
        return DraftOut(has_draft=False)
    return DraftOut(has_draft=True, data=found["data"], meta=found["meta"])


@router.delete("/{entity}/{entity_id}")
def dismiss_draft(
    entity: str,
    entity_id: str,
    route: str,
    drafts: DraftStore = Depends(get_draft_store),
    _current_admin: AdminUser = Depends(get_current_admin),
):
    drafts.dismiss(entity, entity_id, route)
    return {"success": True}
