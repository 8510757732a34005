"""Account endpoints (register, login, logout) and the get_current_user dependency."""

import json
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, get_storage
from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import UnsupportedMediaTypeError, ValidationError
from app.models.user import User
from app.schemas.users import ApiResponse, LoginData, LoginRequest, UserPublic
from app.services.authenticator import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    authenticate_token,
    extract_token,
)
from app.services.sessions import login_user, logout_user, register_user
from app.services.storage import CloudinaryStorage
from app.services.uploads import discard_staged, stage_upload

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> User:
    """Dependency: require a valid access token (cookie or Bearer) and return its user. Raises 401."""
    authorization = (
        f"{credentials.scheme} {credentials.credentials}" if credentials is not None else None
    )
    token = extract_token(request.cookies, authorization)
    user = authenticate_token(db, token, settings)
    request.state.user = user
    return user


def _set_session_cookies(response: Response, settings: Settings, access: str, refresh: str) -> None:
    for key, value, minutes in (
        (ACCESS_TOKEN_COOKIE, access, settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        (REFRESH_TOKEN_COOKIE, refresh, settings.REFRESH_TOKEN_EXPIRE_MINUTES),
    ):
        response.set_cookie(
            key,
            value,
            max_age=minutes * 60,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE,
        )


def _clear_session_cookies(response: Response, settings: Settings) -> None:
    for key in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            key,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE,
        )


async def _get_login_request(request: Request) -> LoginRequest:
    """Read credentials from a JSON or form body."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json":
        try:
            data = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError("Invalid JSON body", reason=str(e)) from e
        if not isinstance(data, dict):
            raise ValidationError("JSON body must be an object")
    elif content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
        form = await request.form()
        data = {k: v for k, v in form.items() if isinstance(v, str)}
    else:
        raise UnsupportedMediaTypeError("Content-Type must be application/json or a form")
    try:
        return LoginRequest.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid login request", reason=str(e)[:500]) from e


@router.post("/register", response_model=ApiResponse[UserPublic], status_code=201)
async def register(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    storage: Annotated[CloudinaryStorage, Depends(get_storage)],
    full_name: Annotated[str, Form(alias="fullName")] = "",
    email: Annotated[str, Form()] = "",
    username: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
) -> ApiResponse[UserPublic]:
    """
    Register an account from a multipart form.

    Fields: fullName, email, username, password. Files: avatar (required),
    coverImage (optional). Images are staged locally, uploaded to object
    storage and the returned URLs stored on the account.
    """
    avatar_path = cover_path = None
    try:
        avatar_path = await stage_upload(
            avatar, settings.UPLOAD_TEMP_DIR, settings.MAX_IMAGE_BYTES, "avatar"
        )
        cover_path = await stage_upload(
            cover_image, settings.UPLOAD_TEMP_DIR, settings.MAX_IMAGE_BYTES, "coverImage"
        )
        user = await register_user(
            db,
            storage,
            full_name=full_name,
            email=email,
            username=username,
            password=password,
            avatar_path=avatar_path,
            cover_image_path=cover_path,
        )
    finally:
        discard_staged(avatar_path, cover_path)
    return ApiResponse[UserPublic](
        status=201, data=user, message="User registered successfully"
    )


@router.post("/login", response_model=ApiResponse[LoginData])
async def login(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ApiResponse[LoginData]:
    """
    Authenticate with username or email and password.

    Accepts a JSON or form body. Sets HttpOnly accessToken and refreshToken
    cookies and also returns both tokens for non-cookie clients, which send
    the access token as: Authorization: Bearer <accessToken>
    """
    body = await _get_login_request(request)
    result = await run_in_threadpool(
        login_user,
        db,
        settings,
        password=body.password,
        username=body.username,
        email=body.email,
    )
    _set_session_cookies(response, settings, result.access_token, result.refresh_token)
    return ApiResponse[LoginData](
        status=200,
        data=LoginData(
            user=result.user,
            access_token=result.access_token,
            refresh_token=result.refresh_token,
        ),
        message="User logged in successfully",
    )


@router.post("/logout", response_model=ApiResponse[dict])
def logout(
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ApiResponse[dict]:
    """End the current session: clear the stored refresh token and both cookies."""
    logout_user(db, current_user.id)
    _clear_session_cookies(response, settings)
    return ApiResponse[dict](status=200, data={}, message="User logged out successfully")
