"""FastAPI dependencies for database access and authentication."""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_db
from .exceptions import AuthenticationError, AuthorizationError
from .security import decode_access_token
from ..models.user import User
from ..services.auth_service import SessionService
from ..services.notification_service import get_notification_service
from ..services.user_service import UserService

DB_DEPENDENCY = Depends(get_db)
NOTIFICATIONS_DEPENDENCY = Depends(get_notification_service)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = DB_DEPENDENCY,
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Optional[User]:
    """
    Resolve the caller from a bearer token or the session cookie.

    A valid ``Authorization: Bearer`` header takes precedence; otherwise the
    session cookie is used. Anonymous requests resolve to None.
    """
    token = _bearer_token(authorization)
    if token:
        payload = decode_access_token(token)
        if payload is not None:
            user = await UserService(db).get_user_by_id(int(payload["sub"]))
            if user is not None:
                return user

    session_token = request.cookies.get(settings.session_cookie_name)
    if session_token:
        user = await SessionService(db).get_user_for_token(session_token)
        if user is not None:
            return user

    return None


async def require_user(user: Optional[User] = Depends(get_current_user_optional)) -> User:
    """
    Require an authenticated caller.

    Raises:
        AuthenticationError: If the request carries no valid credentials
    """
    if user is None:
        raise AuthenticationError()
    return user


async def require_admin(user: Optional[User] = Depends(get_current_user_optional)) -> User:
    """
    Require an authenticated administrator.

    Raises:
        AuthenticationError: If the request carries no valid credentials
        AuthorizationError: If the caller is not an administrator
    """
    if user is None:
        raise AuthenticationError(detail="Not authorized")
    if not user.is_admin:
        raise AuthorizationError()
    return user


CurrentUser = Depends(require_user)
AdminUser = Depends(require_admin)
OptionalUser = Depends(get_current_user_optional)
