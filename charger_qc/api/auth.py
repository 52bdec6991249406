from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from charger_qc.core.config import settings
from charger_qc.core.deps import CurrentSession, get_current_session, get_identity
from charger_qc.core.errors import AuthError
from charger_qc.core.identity import IdentityProvider
from charger_qc.models.user_model import TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])


# username field of the form carries the email address
@router.post("/token", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    identity: IdentityProvider = Depends(get_identity),
):
    try:
        signed_in = identity.sign_in(form_data.username, form_data.password)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "access_token": signed_in.access_token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,  # seconds
        "role": signed_in.user.role,
    }


@router.post("/logout")
async def logout(
    session: CurrentSession = Depends(get_current_session),
    identity: IdentityProvider = Depends(get_identity),
):
    identity.sign_out(session.session_id)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def read_users_me(session: CurrentSession = Depends(get_current_session)):
    return {
        "email": session.user.email,
        "role": session.user.role,
        "is_active": session.user.is_active,
    }
