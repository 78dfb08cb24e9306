from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from src.api.auth_utils import (
    ADMIN_SESSION_MINUTES,
    issue_admin_token,
    verify_password,
)
from src.api.deps import Settings, get_current_admin, get_settings
from src.domain.entities import AdminUser

router = APIRouter()


class Token(BaseModel):
    access_token: str
    token_type: str


@router.post("/login", response_model=Token)
async def login_for_access_token(
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    settings: Settings = Depends(get_settings),
) -> Token:
    """Authenticate the admin and return an access token."""
    email = form_data.username.strip()
    if email.lower() != settings.admin_email.lower() or not verify_password(
        form_data.password, settings.admin_password_hash
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = issue_admin_token(settings.admin_email, settings.secret_key)

    # Set HttpOnly Cookie
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=ADMIN_SESSION_MINUTES * 60,
        expires=ADMIN_SESSION_MINUTES * 60,
        samesite="lax",
        secure=settings.base_url.startswith("https://"),
    )

    return Token(access_token=access_token, token_type="bearer")


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Log out by clearing the cookie."""
    response.delete_cookie(key="access_token")
    return {"status": "success"}


@router.get("/me")
def read_admin_me(
    current_admin: AdminUser = Depends(get_current_admin),
) -> dict[str, Any]:
    return {"email": current_admin.email, "display_name": current_admin.display_name}
