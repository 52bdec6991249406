"""
core/deps.py ── FastAPI dependencies: app components, current session, roles
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated, Literal

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import BaseModel, ValidationError

from charger_qc.core.identity import IdentityProvider
from charger_qc.core.security import decode_token, verify_token_type
from charger_qc.core.session import SessionRegistry
from charger_qc.models.user_model import Role, User
from charger_qc.services.dashboard import DashboardState

logger = logging.getLogger(__name__)

# ──────────────────────────────
# 1. Types
# ──────────────────────────────
class TokenPayload(BaseModel):
    sub: str
    sid: str
    exp: int
    type: Literal["access"]

class CurrentSession(BaseModel):
    session_id: str
    user: User

# ──────────────────────────────
# 2. App components (built in main.lifespan)
# ──────────────────────────────
def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions

def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity

def get_dashboard(request: Request) -> DashboardState:
    return request.app.state.dashboard

# ──────────────────────────────
# 3. OAuth2 source
# ──────────────────────────────
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/auth/token",
    scheme_name="JWT",
    auto_error=False
)

def http_exc(code: int, detail: str) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(status_code=code, detail=detail, headers=headers)

# ──────────────────────────────
# 4. Token -> session
# ──────────────────────────────
def resolve_session(token: str | None, sessions: SessionRegistry) -> CurrentSession:
    """Shared by REST and WebSocket auth; raises http_exc(401) on any failure."""
    if not token:
        raise http_exc(status.HTTP_401_UNAUTHORIZED, "Not authenticated")

    try:
        payload_dict = decode_token(token)
        payload = TokenPayload(**payload_dict)
    except (JWTError, ValidationError) as e:
        logger.warning("Token decode error: %s", e)
        raise http_exc(status.HTTP_401_UNAUTHORIZED, "Invalid token")

    if not verify_token_type(payload_dict, "access"):
        raise http_exc(status.HTTP_401_UNAUTHORIZED, "Invalid token type")

    current_time = int(datetime.now(tz=timezone.utc).timestamp())
    if payload.exp < current_time:
        raise http_exc(status.HTTP_401_UNAUTHORIZED, "Token expired")

    user = sessions.current(payload.sid)
    if user is None:
        logger.info("Session ended or unknown for %s", payload.sub)
        raise http_exc(status.HTTP_401_UNAUTHORIZED, "Session ended")
    if not user.is_active:
        raise http_exc(status.HTTP_401_UNAUTHORIZED, "User inactive")

    return CurrentSession(session_id=payload.sid, user=user)

def get_current_session(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    sessions: Annotated[SessionRegistry, Depends(get_sessions)],
) -> CurrentSession:
    return resolve_session(token, sessions)

def get_current_user(
    session: Annotated[CurrentSession, Depends(get_current_session)]
) -> User:
    return session.user

# ──────────────────────────────
# 5. Role checks
# ──────────────────────────────
def require_roles(*allowed: Role):
    """admin always passes."""
    allowed_set = set(allowed) | {"admin"}

    def checker(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role not in allowed_set:
            logger.warning("Access denied for user %s with role %s", user.email, user.role)
            raise http_exc(status.HTTP_403_FORBIDDEN, "Insufficient permissions")
        return user

    checker.__name__ = f"require_roles_{'_'.join(sorted(allowed_set))}"
    return checker
