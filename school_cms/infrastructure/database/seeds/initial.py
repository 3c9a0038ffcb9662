# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial seed data.

Creates the default (Brazil) school used as the country-resolution fallback
and a super admin so the CMS can be reached after the first deploy. Running
the seed again is a no-op.
"""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.domains.auth.password import hash_password
from school_cms.infrastructure.database.models import CmsUser, School

if TYPE_CHECKING:
    from school_cms.core.config.settings import Settings

logger = logging.getLogger(__name__)


async def seed_default_school(session: AsyncSession, settings: "Settings") -> School:
    """Create the fallback school unless one exists for its country."""
    seed = settings.seed
    result = await session.execute(
        select(School).where(School.country == seed.default_country).limit(1)
    )
    school = result.scalar_one_or_none()
    if school is not None:
        return school

    school = School(
        name=seed.default_school_name,
        slug=seed.default_school_slug,
        country=seed.default_country,
        country_name="Brasil",
        timezone="America/Sao_Paulo",
        language="pt-BR",
        currency="BRL",
        status="active",
    )
    session.add(school)
    await session.flush()
    logger.info("Seeded default school: %s (%s)", school.name, school.country)
    return school


async def seed_super_admin(
    session: AsyncSession,
    settings: "Settings",
    tenant_id: str | None = None,
) -> CmsUser | None:
    """Create a super admin when there is none.

    The admin is attached to tenant_id so tenant-scoped admin routes have a
    default school to work on.

    Returns:
        The created user, or None if a super admin already exists.
    """
    count = await session.scalar(
        select(func.count()).select_from(CmsUser).where(CmsUser.role == "super_admin")
    )
    if count:
        return None

    seed = settings.seed
    user = CmsUser(
        tenant_id=tenant_id,
        email=seed.admin_email.lower(),
        password_hash=hash_password(seed.admin_password.get_secret_value()),
        first_name="Super",
        last_name="Admin",
        role="super_admin",
        is_active=True,
    )
    session.add(user)
    await session.flush()
    logger.info("Seeded super admin: %s", user.email)
    return user


async def seed_initial_data(session: AsyncSession, settings: "Settings") -> dict:
    """Seed everything needed for a fresh installation.

    Returns:
        Dict describing what was created.
    """
    school = await seed_default_school(session, settings)
    admin = await seed_super_admin(session, settings, tenant_id=school.id)
    return {
        "school_id": school.id,
        "super_admin_created": admin is not None,
    }
