"""Bidder profiles: the company a company admin runs and a professional's own profile.

Profiles are what ``resolve_bidder`` looks up when a bidder quotes, so the
rules here decide who can bid: a company must be active, a professional must
be verified by an Admin.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import (
    ForbiddenException,
    NotFoundException,
    ProfileExistsException,
    ProfileNotFoundException,
)
from src.models.company import Company
from src.models.professional import Professional
from src.modules.identity.actors import Actor, Admin, CompanyAdmin
from src.modules.identity.actors import Professional as ProfessionalActor

logger = logging.getLogger(__name__)

COMPANY_FIELDS = frozenset(
    {"name", "description", "location", "logo", "contact_email", "contact_phone"}
)
PROFESSIONAL_FIELDS = frozenset({"name", "description", "logo", "phone"})


def _pick(fields: dict, allowed: frozenset) -> dict:
    return {key: value for key, value in fields.items() if key in allowed and value is not None}


class ProfileService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Companies
    # ------------------------------------------------------------------

    async def _active_company(self, admin_user_id: uuid.UUID) -> Company | None:
        result = await self.db.execute(
            select(Company)
            .where(Company.admin_user_id == admin_user_id, Company.is_active.is_(True))
            .order_by(Company.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_company(self, actor: Actor, name: str, **fields) -> Company:
        """Register the caller's company. It starts unverified but can bid at once."""
        if not isinstance(actor, CompanyAdmin):
            raise ForbiddenException("Only company admins can register a company")
        if await self._active_company(actor.user_id) is not None:
            raise ProfileExistsException("This user already administers an active company")

        company = Company(
            name=name,
            admin_user_id=actor.user_id,
            is_verified=False,
            is_active=True,
            **_pick(fields, COMPANY_FIELDS - {"name"}),
        )
        self.db.add(company)
        await self.db.flush()
        logger.info("Company %s registered by admin %s", company.id, actor.user_id)
        return company

    async def get_my_company(self, actor: Actor) -> Company:
        if not isinstance(actor, CompanyAdmin):
            raise ForbiddenException("Only company admins have a company profile")
        company = await self._active_company(actor.user_id)
        if company is None:
            raise ProfileNotFoundException("No active company is administered by this user")
        return company

    async def update_my_company(self, actor: Actor, **changes) -> Company:
        company = await self.get_my_company(actor)
        for key, value in _pick(changes, COMPANY_FIELDS).items():
            setattr(company, key, value)
        await self.db.flush()
        return company

    async def deactivate_my_company(self, actor: Actor) -> Company:
        """Soft-delete: the company stops bidding; its quotes are kept."""
        company = await self.get_my_company(actor)
        company.is_active = False
        await self.db.flush()
        logger.info("Company %s deactivated by admin %s", company.id, actor.user_id)
        return company

    async def get_company(self, company_id: uuid.UUID) -> Company:
        company = await self.db.get(Company, company_id)
        if company is None or not company.is_active:
            raise NotFoundException(f"Company {company_id} not found")
        return company

    async def list_companies(
        self,
        search: str | None = None,
        verified_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Company], int]:
        """Active companies, best rated first."""
        base = select(Company).where(Company.is_active.is_(True))
        if search:
            base = base.where(Company.name.ilike(f"%{search}%"))
        if verified_only:
            base = base.where(Company.is_verified.is_(True))

        total_result = await self.db.execute(select(func.count()).select_from(base.subquery()))
        result = await self.db.execute(
            base.order_by(Company.rating.desc(), Company.name).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), total_result.scalar() or 0

    async def verify_company(self, actor: Actor, company_id: uuid.UUID) -> Company:
        if not isinstance(actor, Admin):
            raise ForbiddenException("Only admins can verify companies")
        company = await self.db.get(Company, company_id)
        if company is None:
            raise NotFoundException(f"Company {company_id} not found")
        if not company.is_verified:
            company.is_verified = True
            await self.db.flush()
            logger.info("Company %s verified by admin %s", company_id, actor.user_id)
        return company

    # ------------------------------------------------------------------
    # Professionals
    # ------------------------------------------------------------------

    async def _own_professional(self, user_id: uuid.UUID) -> Professional | None:
        result = await self.db.execute(
            select(Professional).where(Professional.user_id == user_id).limit(1)
        )
        return result.scalar_one_or_none()

    async def create_professional(self, actor: Actor, name: str, email: str, **fields) -> Professional:
        """Create the caller's profile. It cannot bid until an Admin verifies it."""
        if not isinstance(actor, ProfessionalActor):
            raise ForbiddenException("Only professionals can create a professional profile")
        if await self._own_professional(actor.user_id) is not None:
            raise ProfileExistsException("This user already has a professional profile")

        professional = Professional(
            name=name,
            email=email.lower(),
            user_id=actor.user_id,
            is_verified=False,
            **_pick(fields, PROFESSIONAL_FIELDS - {"name"}),
        )
        # The unique email constraint is the final word on duplicates
        try:
            async with self.db.begin_nested():
                self.db.add(professional)
                await self.db.flush()
        except IntegrityError as exc:
            raise ProfileExistsException("A professional profile with this email already exists") from exc

        logger.info("Professional %s created for user %s", professional.id, actor.user_id)
        return professional

    async def get_my_professional(self, actor: Actor) -> Professional:
        if not isinstance(actor, ProfessionalActor):
            raise ForbiddenException("Only professionals have a professional profile")
        professional = await self._own_professional(actor.user_id)
        if professional is None:
            raise ProfileNotFoundException("No professional profile for this user")
        return professional

    async def update_my_professional(self, actor: Actor, **changes) -> Professional:
        professional = await self.get_my_professional(actor)
        for key, value in _pick(changes, PROFESSIONAL_FIELDS).items():
            setattr(professional, key, value)
        await self.db.flush()
        return professional

    async def get_professional(self, professional_id: uuid.UUID) -> Professional:
        professional = await self.db.get(Professional, professional_id)
        if professional is None:
            raise NotFoundException(f"Professional {professional_id} not found")
        return professional

    async def list_professionals(
        self,
        search: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Professional], int]:
        """Verified professionals, best rated first; ``search`` matches name or description."""
        base = select(Professional).where(Professional.is_verified.is_(True))
        if search:
            pattern = f"%{search}%"
            base = base.where(
                Professional.name.ilike(pattern) | Professional.description.ilike(pattern)
            )

        total_result = await self.db.execute(select(func.count()).select_from(base.subquery()))
        result = await self.db.execute(
            base.order_by(Professional.rating.desc(), Professional.name).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), total_result.scalar() or 0

    async def verify_professional(self, actor: Actor, professional_id: uuid.UUID) -> Professional:
        """Admin-only; verifying twice is a no-op."""
        if not isinstance(actor, Admin):
            raise ForbiddenException("Only admins can verify professionals")
        professional = await self.get_professional(professional_id)
        if not professional.is_verified:
            professional.is_verified = True
            await self.db.flush()
            logger.info("Professional %s verified by admin %s", professional_id, actor.user_id)
        return professional
