"""Authentication router: registration, login sessions and password resets."""

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.dependencies import CurrentUser, DB_DEPENDENCY, NOTIFICATIONS_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.user import User, UserSession
from ..schemas.common import MessageResponse
from ..schemas.user import (
    DirectPasswordReset,
    LoginRequest,
    LoginResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    RegisterRequest,
    UserResponse,
)
from ..services.auth_service import AuthService
from ..services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _set_session_cookie(response: JSONResponse, session: UserSession) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    request: RegisterRequest,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """
    Create an account and log it in.

    Welcome and administrator emails are best effort.
    """
    auth_service = AuthService(db, notifications)

    try:
        user, session = await auth_service.register(request)

        logger.info("User registered", extra={"user_id": user.id, "username": user.username})

        response = JSONResponse(status_code=201, content=UserResponse.model_validate(user).to_json())
        _set_session_cookie(response, session)
        return response

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in registration",
            extra={"username": request.username, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """Check credentials, open a cookie session and issue a bearer token."""
    auth_service = AuthService(db, notifications)

    try:
        user, session, token = await auth_service.login(request.username, request.password)

        response_data = LoginResponse(user=UserResponse.model_validate(user), token=token)
        response = JSONResponse(status_code=200, content=response_data.to_json())
        _set_session_cookie(response, session)
        return response

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in login",
            extra={"username": request.username, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """End the cookie session, if any. Always succeeds."""
    await AuthService(db, notifications).logout(request.cookies.get(settings.session_cookie_name))

    response = JSONResponse(status_code=200, content=MessageResponse(message="Logged out").to_json())
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response


@router.get("/user", response_model=UserResponse)
async def current_user(user: User = CurrentUser) -> JSONResponse:
    return JSONResponse(status_code=200, content=UserResponse.model_validate(user).to_json())


@router.post("/request-password-reset", response_model=MessageResponse)
async def request_password_reset(
    request: PasswordResetRequest,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """
    Email a password reset link.

    The answer is the same whether or not the address is registered.
    """
    await AuthService(db, notifications).request_password_reset(str(request.email))

    response_data = MessageResponse(
        message="If an account exists for this email, a password reset link has been sent"
    )
    return JSONResponse(status_code=200, content=response_data.to_json())


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: PasswordResetConfirm,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    user = await AuthService(db, notifications).reset_password(request.token, request.new_password)
    logger.info("Password reset with token", extra={"user_id": user.id})
    return JSONResponse(status_code=200, content=MessageResponse(message="Password updated").to_json())


@router.post("/reset-password-direct", response_model=MessageResponse)
async def reset_password_direct(
    request: DirectPasswordReset,
    actor: User = CurrentUser,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """Set a password by email: your own, or anyone's for administrators."""
    user = await AuthService(db, notifications).reset_password_direct(
        actor, str(request.email), request.new_password
    )
    logger.info("Password reset directly", extra={"user_id": user.id, "actor_id": actor.id})
    return JSONResponse(status_code=200, content=MessageResponse(message="Password updated").to_json())
