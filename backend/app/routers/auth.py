"""Admin auth API router. Validates requests and delegates to the auth service."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.schemas.admin_user import AdminUserOut, LoginRequest, TokenResponse
from app.services.auth_service import create_access_token, login_admin
from app.services.cache_service import TTLCache, get_cache
from app.middleware.auth_middleware import get_current_admin
from app.models.admin_user import AdminUser

router = APIRouter(prefix="/api/admin/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    admin = login_admin(db, request.username)
    token = create_access_token(admin.id)
    return TokenResponse(access_token=token, user=AdminUserOut.model_validate(admin))


@router.post("/logout")
def logout(
    current_admin: AdminUser = Depends(get_current_admin),
    cache: TTLCache = Depends(get_cache),
):
    _ = current_admin
    cache.clear()
    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=AdminUserOut)
def me(
    current_admin: AdminUser = Depends(get_current_admin),
    cache: TTLCache = Depends(get_cache),
):
    cache_key = f"admin:{current_admin.id}"
    cached = cache.get(cache_key)
    if cached is not None:
        return cached
    profile = AdminUserOut.model_validate(current_admin)
    cache.set(cache_key, profile, ttl=settings.AUTH_CACHE_TTL_SECONDS)
    return profile
