"""Admin authentication helpers: token issuing and account lookup."""

from datetime import datetime, timedelta, timezone
from jose import jwt
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from app.models.admin_user import AdminUser
from app.config import settings

ALGORITHM = "HS256"


def create_access_token(admin_id: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(admin_id), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def login_admin(db: Session, username: str) -> AdminUser:
    name = (username or "").strip()
    admin = db.query(AdminUser).filter(AdminUser.username == name, AdminUser.is_active == True).first()  # noqa: E712
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    return admin
