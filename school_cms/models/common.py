# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared API schema building blocks."""

import math
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict


class ORMModel(BaseModel):
    """Base for responses built from ORM rows or joined mappings."""

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    """Page-based pagination block returned by list endpoints."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if limit else 0,
        )


class SuccessResponse(BaseModel):
    """Acknowledgement for mutations that return no resource."""

    success: bool = True
    message: str | None = None


def canonical_uuid(value: object) -> str:
    """Lower-case hyphenated form of a UUID.

    Raises:
        ValueError: If value is not a UUID.
    """
    return str(UUID(str(value)))


# IDs bound to UUID columns; malformed values fail request validation
UUIDStr = Annotated[str, AfterValidator(canonical_uuid)]


def page_offset(page: int, limit: int) -> int:
    """Row offset of a 1-based page."""
    return (max(page, 1) - 1) * limit
