"""User administration router – prefix=/api/users (admin only)"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from charger_qc.core.deps import get_identity, require_roles
from charger_qc.core.errors import AuthError
from charger_qc.core.identity import SQLiteIdentityProvider
from charger_qc.models.user_model import Role, User

logger = logging.getLogger("api.users")

# ──────────────────────────────────────────────
# Pydantic Schemas
# ──────────────────────────────────────────────
class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=4)
    role: Role = "technician"


class UserUpdate(BaseModel):
    password: Optional[str] = Field(None, min_length=4)
    role: Optional[Role] = None
    is_active: Optional[bool] = None

# ──────────────────────────────────────────────
router = APIRouter(prefix="/users", tags=["users"])
require_admin = Depends(require_roles("admin"))
# ──────────────────────────────────────────────

# ① List -----------------------------------------------------------------
@router.get("", response_model=List[User], dependencies=[require_admin])
def get_users(identity: SQLiteIdentityProvider = Depends(get_identity)):
    return identity.list_users()


# ② Create ---------------------------------------------------------------
@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=User,
    dependencies=[require_admin],
)
def add_user(payload: UserCreate, identity: SQLiteIdentityProvider = Depends(get_identity)):
    try:
        user = identity.register(payload.email, payload.password, payload.role)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=e.message)
    logger.info("admin created %s (%s)", user.email, user.role)
    return user


# ③ Update (partial; deactivating ends the user's sessions) -------------
@router.patch("/{uid}", response_model=User, dependencies=[require_admin])
def edit_user(
    uid: int,
    payload: UserUpdate,
    identity: SQLiteIdentityProvider = Depends(get_identity),
):
    if payload.password is None and payload.role is None and payload.is_active is None:
        raise HTTPException(status_code=400, detail="Nothing to update")

    user = identity.update_user(
        uid,
        password=payload.password,
        role=payload.role,
        is_active=payload.is_active,
    )
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ③-1 PUT behaves the same as PATCH ----------------------------------------
@router.put("/{uid}", response_model=User, dependencies=[require_admin])
def replace_user(
    uid: int,
    payload: UserUpdate,
    identity: SQLiteIdentityProvider = Depends(get_identity),
):
    return edit_user(uid, payload, identity)
