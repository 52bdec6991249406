# ========================= models/user_model.py =========================
from typing import Literal

from pydantic import BaseModel

Role = Literal["admin", "manager", "technician"]


class User(BaseModel):
    id: int
    email: str
    role: Role
    is_active: bool = True


class SignedIn(BaseModel):
    user: User
    session_id: str
    access_token: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    role: Role
