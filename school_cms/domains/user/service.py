# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""CMS user management service.

This module provides the UserService that handles:
- User creation with bcrypt-hashed passwords
- Listing and searching a tenant's users
- Updates and deactivation (which also revokes sessions)

Emails are stored lower-case and are unique across all tenants.

Example:
    >>> service = UserService(db, PasswordHasher())
    >>> user = await service.create_user(tenant_id, request, created_by=admin.id)
"""

import logging

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.domains.audit.service import AuditService
from school_cms.domains.auth.password import PasswordHasher
from school_cms.infrastructure.database.models import CmsUser, UserSession
from school_cms.models.common import page_offset
from school_cms.models.user import UserCreateRequest, UserResponse, UserUpdateRequest
from school_cms.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base exception for user service errors."""

    pass


class UserNotFoundError(UserServiceError):
    """Raised when a user is not found."""

    pass


class UserExistsError(UserServiceError):
    """Raised when creating a user with an email already in use."""

    pass


class RoleNotAllowedError(UserServiceError):
    """Raised when an admin assigns a role above their own."""

    pass


class SelfDeactivationError(UserServiceError):
    """Raised when a user tries to deactivate their own account."""

    pass


class UserService:
    """Service for managing CMS users.

    Attributes:
        _db: Async database session.
        _hasher: Password hasher.
    """

    def __init__(self, db: AsyncSession, hasher: PasswordHasher | None = None) -> None:
        self._db = db
        self._hasher = hasher or PasswordHasher()
        self._audit = AuditService(db)

    async def list_users(
        self,
        tenant_id: str,
        role: str | None = None,
        active: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[UserResponse], int]:
        """List a tenant's users, newest first.

        Args:
            tenant_id: Effective tenant.
            role: Optional role filter.
            active: Optional active-status filter.
            search: Matches first name, last name or email.
            page: 1-based page.
            limit: Page size.

        Returns:
            Tuple of (users, total count).
        """
        stmt = select(CmsUser).where(CmsUser.tenant_id == tenant_id)
        if role:
            stmt = stmt.where(CmsUser.role == role)
        if active is not None:
            stmt = stmt.where(CmsUser.is_active.is_(active))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    CmsUser.first_name.ilike(pattern),
                    CmsUser.last_name.ilike(pattern),
                    CmsUser.email.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._db.execute(count_stmt)).scalar() or 0

        stmt = (
            stmt.order_by(CmsUser.created_at.desc())
            .limit(limit)
            .offset(page_offset(page, limit))
        )
        result = await self._db.execute(stmt)

        users = [UserResponse.model_validate(u) for u in result.scalars().all()]
        return users, total

    async def get_user(self, tenant_id: str | None, user_id: str) -> UserResponse:
        """Get a user, scoped to tenant_id unless it is None.

        Raises:
            UserNotFoundError: If not found.
        """
        return UserResponse.model_validate(await self._get_model(tenant_id, user_id))

    async def create_user(
        self,
        tenant_id: str | None,
        request: UserCreateRequest,
        created_by: str,
        creator_role: str = "admin",
    ) -> UserResponse:
        """Create a user in tenant_id.

        Raises:
            RoleNotAllowedError: If a non super admin creates a super admin.
            UserExistsError: If the email is already registered.
        """
        if request.role == "super_admin" and creator_role != "super_admin":
            raise RoleNotAllowedError("Only super admins can create super admins")

        email = request.email.lower()
        existing = await self._db.execute(select(CmsUser.id).where(CmsUser.email == email))
        if existing.scalar_one_or_none() is not None:
            raise UserExistsError(f"User with email {email} already exists")

        user = CmsUser(
            tenant_id=tenant_id,
            email=email,
            password_hash=self._hasher.hash(request.password),
            first_name=request.first_name,
            last_name=request.last_name,
            role=request.role,
            avatar_url=request.avatar_url,
            is_active=True,
        )
        self._db.add(user)
        await self._db.flush()

        await self._audit.record(
            "user_created",
            "cms_users",
            user_id=created_by,
            tenant_id=tenant_id,
            record_id=user.id,
            details={"email": email, "role": user.role},
        )
        await self._db.commit()

        logger.info("Created user %s with role %s", user.id, user.role)
        return UserResponse.model_validate(user)

    async def update_user(
        self,
        tenant_id: str | None,
        user_id: str,
        request: UserUpdateRequest,
        updated_by: str,
        updater_role: str = "admin",
    ) -> UserResponse:
        """Apply the fields present in request.

        Deactivating through an update also revokes the user's sessions.

        Raises:
            UserNotFoundError: If not found.
            RoleNotAllowedError: If a non super admin grants super_admin or
                edits a super admin.
            SelfDeactivationError: If a user deactivates themselves.
        """
        user = await self._get_model(tenant_id, user_id)
        self._check_target_role(user, updater_role)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        if changes.get("role") == "super_admin" and updater_role != "super_admin":
            raise RoleNotAllowedError("Only super admins can grant super_admin")
        if changes.get("is_active") is False and user.id == updated_by:
            raise SelfDeactivationError("You cannot deactivate your own account")

        password = changes.pop("password", None)
        if password:
            user.password_hash = self._hasher.hash(password)

        for key, value in changes.items():
            setattr(user, key, value)

        if changes.get("is_active") is False:
            await self._revoke_sessions(user.id)

        await self._audit.record(
            "user_updated",
            "cms_users",
            user_id=updated_by,
            tenant_id=user.tenant_id,
            record_id=user.id,
            details={"updatedFields": sorted(changes) + (["password"] if password else [])},
        )
        await self._db.commit()

        return UserResponse.model_validate(user)

    async def deactivate_user(
        self,
        tenant_id: str | None,
        user_id: str,
        deactivated_by: str,
        deactivator_role: str = "admin",
    ) -> UserResponse:
        """Soft-delete a user and revoke all their sessions.

        Raises:
            UserNotFoundError: If not found.
            RoleNotAllowedError: If a non super admin deactivates a super admin.
            SelfDeactivationError: If deactivated_by is user_id.
        """
        if user_id == deactivated_by:
            raise SelfDeactivationError("You cannot deactivate your own account")

        user = await self._get_model(tenant_id, user_id)
        self._check_target_role(user, deactivator_role)
        user.is_active = False
        revoked = await self._revoke_sessions(user.id)

        await self._audit.record(
            "user_deactivated",
            "cms_users",
            user_id=deactivated_by,
            tenant_id=user.tenant_id,
            record_id=user.id,
            details={"email": user.email, "revokedSessions": revoked},
        )
        await self._db.commit()

        logger.info("Deactivated user %s (%d sessions revoked)", user.id, revoked)
        return UserResponse.model_validate(user)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    @staticmethod
    def _check_target_role(user: CmsUser, actor_role: str) -> None:
        if user.role == "super_admin" and actor_role != "super_admin":
            raise RoleNotAllowedError("Only super admins can modify super admins")

    async def _get_model(self, tenant_id: str | None, user_id: str) -> CmsUser:
        stmt = select(CmsUser).where(CmsUser.id == user_id)
        if tenant_id is not None:
            stmt = stmt.where(CmsUser.tenant_id == tenant_id)
        result = await self._db.execute(stmt)
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def _revoke_sessions(self, user_id: str) -> int:
        result = await self._db.execute(
            update(UserSession)
            .where(UserSession.user_id == user_id, UserSession.is_active.is_(True))
            .values(is_active=False, updated_at=utc_now())
        )
        return result.rowcount or 0
