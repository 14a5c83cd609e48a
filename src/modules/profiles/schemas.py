"""Pydantic v2 schemas for company and professional profiles."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import Field

from src.schemas.responses import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------


class CompanyCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    location: str | None = Field(None, max_length=255)
    logo: str | None = Field(None, max_length=500)
    contact_email: str | None = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    contact_phone: str | None = Field(None, max_length=50)


class CompanyUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    location: str | None = Field(None, max_length=255)
    logo: str | None = Field(None, max_length=500)
    contact_email: str | None = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    contact_phone: str | None = Field(None, max_length=50)


class CompanyResponse(CamelModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    admin_user_id: uuid.UUID
    location: str | None = None
    logo: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    rating: Decimal
    is_verified: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CompanyListResponse(CamelModel):
    items: list[CompanyResponse]
    total: int
    limit: int
    offset: int


# ---------------------------------------------------------------------------
# Professionals
# ---------------------------------------------------------------------------


class ProfessionalCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    description: str | None = Field(None, max_length=2000)
    logo: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=50)


class ProfessionalUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    logo: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=50)


class ProfessionalResponse(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    user_id: uuid.UUID
    description: str | None = None
    logo: str | None = None
    phone: str | None = None
    rating: Decimal
    is_verified: bool
    created_at: datetime
    updated_at: datetime


class ProfessionalListResponse(CamelModel):
    items: list[ProfessionalResponse]
    total: int
    limit: int
    offset: int
