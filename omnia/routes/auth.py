from datetime import timedelta
from fastapi import APIRouter, HTTPException, Response, status
from omnia.core.config import settings
from omnia.core.security import create_access_token, verify_admin_credentials
from omnia.schemas.auth import LoginIn, SessionInfo

router = APIRouter()

@router.post("/auth/login", response_model=SessionInfo)
async def login(form_data: LoginIn, response: Response):
    if not verify_admin_credentials(form_data.email, form_data.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    expires_delta = timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": form_data.email},
        expires_delta=expires_delta
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        max_age=int(expires_delta.total_seconds()),
        httponly=True,
        samesite="lax",
    )
    return {"email": form_data.email, "expires_in": int(expires_delta.total_seconds())}

@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
