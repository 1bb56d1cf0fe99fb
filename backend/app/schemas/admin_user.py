"""Pydantic contracts for admin login and profile responses."""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class AdminUserOut(BaseModel):
    id: int
    username: str
    email: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    username: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AdminUserOut
