"""Authentication service: login sessions, registration and password resets."""

import logging
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..core.security import (
    create_access_token,
    create_password_reset_token,
    decode_password_reset_token,
    generate_session_token,
    reset_token_matches,
)
from ..core.timeutils import utcnow
from ..models.user import User, UserSession
from ..schemas.user import RegisterRequest
from .notification_service import NotificationService
from .user_service import UserService

logger = logging.getLogger(__name__)


class SessionService:
    """Server-side sessions backing the login cookie."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _lifetime() -> timedelta:
        return timedelta(days=settings.session_max_age_days)

    async def create_session(self, user: User) -> UserSession:
        """Open a new session for ``user`` and return it."""
        now = utcnow()
        session = UserSession(
            token=generate_session_token(),
            user_id=user.id,
            expires_at=now + self._lifetime(),
            last_seen_at=now,
        )
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)

        logger.info("Session created", extra={"user_id": user.id, "session_id": session.id})
        return session

    async def get_user_for_token(self, token: str) -> Optional[User]:
        """
        Resolve a session token to its user, extending the session's expiry.

        Args:
            token: Value of the session cookie

        Returns:
            The user, or None if the token is unknown or expired
        """
        result = await self.db.execute(select(UserSession).where(UserSession.token == token))
        session = result.scalar_one_or_none()
        if session is None:
            return None

        now = utcnow()
        if session.expires_at <= now:
            await self.db.delete(session)
            await self.db.commit()
            logger.info("Expired session rejected", extra={"session_id": session.id})
            return None

        user = await self.db.get(User, session.user_id)
        session.last_seen_at = now
        session.expires_at = now + self._lifetime()
        await self.db.commit()
        return user

    async def delete_session(self, token: str) -> bool:
        result = await self.db.execute(delete(UserSession).where(UserSession.token == token))
        await self.db.commit()
        return result.rowcount > 0

    async def purge_expired(self) -> int:
        """Delete all expired sessions and return how many were removed."""
        result = await self.db.execute(delete(UserSession).where(UserSession.expires_at <= utcnow()))
        await self.db.commit()
        return result.rowcount or 0

    async def count_active(self) -> int:
        result = await self.db.execute(
            select(func.count(UserSession.id)).where(UserSession.expires_at > utcnow())
        )
        return result.scalar_one()


class AuthService:
    """Orchestrates registration, login and password changes."""

    def __init__(self, db: AsyncSession, notifications: NotificationService):
        self.db = db
        self.users = UserService(db)
        self.sessions = SessionService(db)
        self.notifications = notifications

    async def register(self, request: RegisterRequest) -> Tuple[User, UserSession]:
        """
        Create an account, notify the guest and the administrator, and log the user in.

        Raises:
            DuplicateAccountError: If the username or email is already registered
        """
        user = await self.users.create_user(request, password=request.password)

        # Delivery failures are logged by the notification service
        await self.notifications.send_welcome_email(user.email, user.full_name or user.username)
        await self.notifications.notify_admin_new_user(user)
        if user.phone:
            await self.notifications.send_welcome_text(user.phone, user.full_name or user.username)

        session = await self.sessions.create_session(user)
        return user, session

    async def login(self, username: str, password: str) -> Tuple[User, UserSession, str]:
        """
        Check credentials and open a session.

        Returns:
            The user, the new session and a bearer token

        Raises:
            AuthenticationError: If the credentials do not match
        """
        user = await self.users.authenticate(username, password)
        if user is None:
            metrics_collector.record_login(False)
            logger.warning("Login failed", extra={"username": username})
            raise AuthenticationError(detail="Invalid credentials")

        metrics_collector.record_login(True)
        session = await self.sessions.create_session(user)
        token = create_access_token(user)

        logger.info("Login succeeded", extra={"user_id": user.id})
        return user, session, token

    async def logout(self, token: Optional[str]) -> None:
        if token:
            await self.sessions.delete_session(token)

    async def request_password_reset(self, email: str) -> None:
        """Email a reset link if the address belongs to an account; silent otherwise."""
        user = await self.users.get_user_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = create_password_reset_token(user)
        reset_url = f"{settings.site_url.rstrip('/')}/reset-password?token={token}"
        await self.notifications.send_password_reset(user, reset_url)
        logger.info("Password reset email issued", extra={"user_id": user.id})

    async def reset_password(self, token: str, new_password: str) -> User:
        """
        Set a new password using a token from a reset email.

        Raises:
            ValidationError: If the token is invalid, expired or stale
        """
        payload = decode_password_reset_token(token)
        if payload is None:
            raise ValidationError(detail="Invalid or expired reset token")

        user = await self.users.get_user_by_id(int(payload["sub"]))
        if user is None or not reset_token_matches(payload, user):
            raise ValidationError(detail="Invalid or expired reset token")

        return await self.users.set_password(user, new_password)

    async def reset_password_direct(self, actor: User, email: str, new_password: str) -> User:
        """
        Set a password for an account by email, without a reset token.

        Users may only change their own password; administrators may change any.

        Raises:
            AuthorizationError: If the email is not the caller's and the caller is not admin
            NotFoundError: If no account has this email
        """
        if not actor.is_admin and actor.email.lower() != email.lower():
            raise AuthorizationError(detail="You can only change your own password")

        user = await self.users.get_user_by_email(email)
        if user is None:
            raise NotFoundError(resource_type="user", detail="No account is registered with this email")

        return await self.users.set_password(user, new_password)
