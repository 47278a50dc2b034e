"""
MedCare Backend: User Service
===============================

What:  User upsert, role lookup, and role administration.
Why:   The Role Authorizer depends on get_user_by_email() for its single
       lookup per protected request; the admin and profile routes use the rest.
How:   Plain SQLAlchemy statements against the request's session.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from medcare.exceptions import NotFoundError, ValidationError
from medcare.models.user import USER_STATUS_REQUESTED, User, UserRole
from medcare.schemas.user import RoleResponse, SaveUserRequest, UserListResponse, UserResponse

logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "This email is already registered to another account"

# Higher ranks may not be replaced by lower ones
ROLE_RANK = {
    UserRole.PARTICIPANT.value: 1,
    UserRole.ORGANIZER.value: 2,
    UserRole.ADMIN.value: 3,
}


class UserService:
    """Business logic for users and their roles."""

    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def save_user(self, db: AsyncSession, payload: SaveUserRequest) -> UserResponse:
        """
        Insert or update a user keyed by uid.

        Profile fields are refreshed on every save. The role is only set by
        the join workflow or an admin, so re-saving never resets it.
        """
        result = await db.execute(select(User).where(User.uid == payload.uid))
        user = result.scalar_one_or_none()

        holder = await self.get_user_by_email(db, payload.email)
        if holder is not None and holder.uid != payload.uid:
            logger.info("Rejected profile %s: email %s belongs to another uid", payload.uid, payload.email)
            raise ValidationError(message=EMAIL_TAKEN_MESSAGE, field="email")

        if user is None:
            user = User(
                uid=payload.uid,
                email=payload.email,
                display_name=payload.display_name,
                photo_url=payload.photo_url,
            )
            db.add(user)
            logger.info("Created user %s", payload.email)
        else:
            user.email = payload.email
            user.display_name = payload.display_name
            user.photo_url = payload.photo_url

        try:
            await db.flush()
        except IntegrityError as e:
            # A concurrent save claimed the uid or email first
            raise ValidationError(message=EMAIL_TAKEN_MESSAGE, field="email") from e
        return UserResponse.model_validate(user)

    async def get_role(self, db: AsyncSession, email: str) -> RoleResponse:
        user = await self.get_user_by_email(db, email)
        if user is None:
            raise NotFoundError(resource="user", resource_id=email)
        return RoleResponse(email=user.email, role=user.role, status=user.status)

    async def has_role(self, db: AsyncSession, email: str, role: UserRole) -> bool:
        """
        Role check used by the authorizer.

        One lookup per call. A missing user fails the check.
        """
        user = await self.get_user_by_email(db, email)
        return user is not None and user.role == role.value

    async def list_users(self, db: AsyncSession) -> UserListResponse:
        result = await db.execute(select(User).order_by(User.created_at.desc()))
        users = list(result.scalars().all())
        total = await db.scalar(select(func.count(User.id)))
        return UserListResponse(
            users=[UserResponse.model_validate(u) for u in users],
            total_count=total or 0,
        )

    async def update_role(self, db: AsyncSession, email: str, role: UserRole) -> RoleResponse:
        """
        Explicit role change by an admin; clears any pending request flag.

        Roles only move up: participant -> organizer -> admin. A user
        without a role (or with the legacy placeholder) may get any role.

        Raises:
            NotFoundError: no user with this email
            ValidationError: the change would lower the user's role
        """
        user = await self.get_user_by_email(db, email)
        if user is None:
            raise NotFoundError(resource="user", resource_id=email)

        previous = user.role
        if ROLE_RANK.get(role.value, 0) < ROLE_RANK.get(previous, 0):
            raise ValidationError(
                message=f"Role cannot be lowered from {previous} to {role.value}",
                field="role",
            )
        user.role = role.value
        user.status = None
        await db.flush()
        logger.info("Role of %s changed from %s to %s", email, previous, role.value)
        return RoleResponse(email=user.email, role=user.role, status=user.status)

    async def request_organizer(self, db: AsyncSession, email: str) -> RoleResponse:
        """Flag the user as asking for the organizer role; an admin decides later."""
        user = await self.get_user_by_email(db, email)
        if user is None:
            raise NotFoundError(resource="user", resource_id=email)

        user.status = USER_STATUS_REQUESTED
        await db.flush()
        return RoleResponse(email=user.email, role=user.role, status=user.status)


user_service = UserService()
