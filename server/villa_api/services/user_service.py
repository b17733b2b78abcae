"""User service for account management operations."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import DuplicateAccountError, NotFoundError, ValidationError
from ..core.security import generate_temporary_password, hash_password, verify_password
from ..models.blog import BlogPost
from ..models.booking import Booking
from ..models.faq import FaqVote
from ..models.inventory import InventoryMovement
from ..models.message import ChatMessage
from ..models.user import User, UserSession
from ..schemas.user import ManualUserRequest, RegisterRequest, UpdateUserRequest

logger = logging.getLogger(__name__)


class UserService:
    """Service for user-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(
        self,
        request: RegisterRequest | ManualUserRequest,
        password: str,
        is_admin: bool = False,
    ) -> User:
        """
        Create a new user account.

        Args:
            request: Registration or admin-entered account details
            password: Plain-text password to hash and store
            is_admin: Whether the account may access the back office

        Returns:
            Created user entity

        Raises:
            DuplicateAccountError: If the username or email is already registered
        """
        await self._ensure_available(request.username, str(request.email))

        user = User(
            username=request.username,
            password=hash_password(password),
            email=str(request.email).lower(),
            full_name=request.full_name,
            phone=request.phone,
            date_of_birth=request.date_of_birth,
            notes=request.notes,
            is_admin=is_admin,
        )

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "User creation failed due to integrity constraint",
                extra={"username": request.username, "error": str(e)}
            )
            # Lost a race with a concurrent registration
            await self._ensure_available(request.username, str(request.email))
            raise ValidationError(detail="User creation failed due to constraint violation")

        logger.info(
            "User created successfully",
            extra={"user_id": user.id, "username": user.username, "is_admin": user.is_admin}
        )
        return user

    async def create_manual_user(self, request: ManualUserRequest) -> Tuple[User, Optional[str]]:
        """
        Create an account on behalf of a guest.

        Returns:
            The user and the generated temporary password, or None when the
            administrator supplied one
        """
        temporary_password = None
        password = request.password
        if not password:
            temporary_password = generate_temporary_password()
            password = temporary_password

        user = await self.create_user(request, password=password, is_admin=request.is_admin)
        return user, temporary_password

    async def _ensure_available(self, username: str, email: str) -> None:
        if await self.get_user_by_username(username):
            logger.warning("Registration rejected - username taken", extra={"username": username})
            raise DuplicateAccountError("username")
        if await self.get_user_by_email(email):
            logger.warning("Registration rejected - email taken", extra={"email": email})
            raise DuplicateAccountError("email")

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user if the credentials match, None otherwise."""
        user = await self.get_user_by_username(username)
        if user is None or not verify_password(password, user.password):
            return None
        return user

    async def set_password(self, user: User, new_password: str) -> User:
        user.password = hash_password(new_password)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("Password updated", extra={"user_id": user.id})
        return user

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id_or_raise(self, user_id: int) -> User:
        """
        Get user by ID or raise NotFoundError.

        Raises:
            NotFoundError: If user not found
        """
        user = await self.get_user_by_id(user_id)
        if not user:
            logger.warning("User not found", extra={"user_id": user_id})
            raise NotFoundError(resource_type="user", resource_id=user_id)
        return user

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
        return list(result.scalars().all())

    async def update_user(self, user_id: int, request: UpdateUserRequest) -> User:
        user = await self.get_user_by_id_or_raise(user_id)
        for field, value in request.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("User updated", extra={"user_id": user.id, "fields": sorted(request.model_fields_set)})
        return user

    async def delete_user(self, user_id: int, acting_user_id: int) -> None:
        """
        Delete a user and the rows that only make sense with the account.

        Sessions, chat messages and FAQ votes are removed. Bookings, blog
        posts and inventory movements are kept and detached from the user.

        Raises:
            ValidationError: If an administrator tries to delete themselves
            NotFoundError: If user not found
        """
        if user_id == acting_user_id:
            raise ValidationError(detail="You cannot delete your own account")

        user = await self.get_user_by_id_or_raise(user_id)

        await self.db.execute(delete(UserSession).where(UserSession.user_id == user_id))
        await self.db.execute(delete(ChatMessage).where(ChatMessage.user_id == user_id))
        await self.db.execute(delete(FaqVote).where(FaqVote.user_id == user_id))
        await self.db.execute(update(Booking).where(Booking.user_id == user_id).values(user_id=None))
        await self.db.execute(update(BlogPost).where(BlogPost.author_id == user_id).values(author_id=None))
        await self.db.execute(
            update(InventoryMovement).where(InventoryMovement.user_id == user_id).values(user_id=None)
        )
        await self.db.delete(user)
        await self.db.commit()

        logger.info("User deleted", extra={"user_id": user_id, "deleted_by": acting_user_id})

    async def count_users(self) -> int:
        result = await self.db.execute(select(func.count(User.id)))
        return result.scalar_one()

    async def admin_exists(self) -> bool:
        result = await self.db.execute(select(func.count(User.id)).where(User.is_admin.is_(True)))
        return result.scalar_one() > 0
