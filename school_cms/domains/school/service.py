# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School (tenant) lookup service.

Schools are created by seeding and migrations; the API only reads them.
Country-based tenant resolution lives here so the public middleware and
the public routes agree on which school a visitor sees.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.infrastructure.database.models import School

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY = "BRA"


class SchoolServiceError(Exception):
    """Base exception for school service errors."""

    pass


class SchoolNotFoundError(SchoolServiceError):
    """Raised when a school is not found."""

    pass


class SchoolService:
    """Read-only access to schools.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_active(self) -> list[School]:
        """List active schools ordered by name."""
        stmt = select(School).where(School.status == "active").order_by(School.name.asc())
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_identifier(self, identifier: str) -> School:
        """Find an active school by slug or country code.

        The slug is matched as given; the country is matched upper-cased,
        so ``/schools/bra`` and ``/schools/brasil`` both resolve.

        Raises:
            SchoolNotFoundError: If no active school matches.
        """
        stmt = (
            select(School)
            .where(
                or_(School.slug == identifier, School.country == identifier.upper()),
                School.status == "active",
            )
            .limit(1)
        )
        result = await self._db.execute(stmt)
        school = result.scalar_one_or_none()

        if school is None:
            raise SchoolNotFoundError(f"School '{identifier}' not found")
        return school

    async def get_active_by_country(self, country: str) -> School | None:
        stmt = (
            select(School)
            .where(School.country == country, School.status == "active")
            .order_by(School.created_at.asc())
            .limit(1)
        )
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_for_country(self, country: str | None) -> School | None:
        """Resolve the school that serves visitors from country.

        Falls back to the active Brazilian school when the country has none.

        Returns:
            The target school, or None when no country was detected or
            neither lookup matched.
        """
        if not country:
            return None

        school = await self.get_active_by_country(country)
        if school is not None:
            return school

        if country != DEFAULT_COUNTRY:
            school = await self.get_active_by_country(DEFAULT_COUNTRY)
            if school is not None:
                logger.debug("Using default school (%s) for country %s", DEFAULT_COUNTRY, country)
        return school

    async def get_country(self, school_id: str) -> str | None:
        """Country code of an active school, if any."""
        stmt = select(School.country).where(School.id == school_id, School.status == "active")
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()
