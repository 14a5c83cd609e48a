"""Resolve a bidding actor to the company or professional it bids as."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import ForbiddenException, ProfileNotFoundException
from src.models.company import Company
from src.models.enums import BidderType
from src.models.professional import Professional
from src.models.quote import Quote
from src.modules.identity.actors import Actor, CompanyAdmin, Professional as ProfessionalActor


@dataclass(frozen=True)
class Bidder:
    type: BidderType
    profile_id: uuid.UUID
    profile: Company | Professional

    def owns(self, quote: Quote) -> bool:
        if self.type == BidderType.COMPANY:
            return quote.company_id == self.profile_id
        return quote.professional_id == self.profile_id

    def quote_filter(self):
        """WHERE clause selecting this bidder's quotes."""
        if self.type == BidderType.COMPANY:
            return Quote.company_id == self.profile_id
        return Quote.professional_id == self.profile_id

    def quote_fields(self) -> dict:
        if self.type == BidderType.COMPANY:
            return {"company_id": self.profile_id, "professional_id": None}
        return {"company_id": None, "professional_id": self.profile_id}


async def resolve_bidder(db: AsyncSession, actor: Actor) -> Bidder:
    """Return the bidder profile behind ``actor``.

    Raises ForbiddenException for actors that cannot bid and
    ProfileNotFoundException when the profile is missing, inactive or, for
    professionals, not yet verified.
    """
    if isinstance(actor, CompanyAdmin):
        result = await db.execute(
            select(Company)
            .where(Company.admin_user_id == actor.user_id, Company.is_active.is_(True))
            .order_by(Company.created_at)
            .limit(1)
        )
        company = result.scalar_one_or_none()
        if company is None:
            raise ProfileNotFoundException("No active company is administered by this user")
        return Bidder(type=BidderType.COMPANY, profile_id=company.id, profile=company)

    if isinstance(actor, ProfessionalActor):
        result = await db.execute(
            select(Professional).where(Professional.user_id == actor.user_id).limit(1)
        )
        professional = result.scalar_one_or_none()
        if professional is None or not professional.is_verified:
            raise ProfileNotFoundException("No verified professional profile for this user")
        return Bidder(type=BidderType.PROFESSIONAL, profile_id=professional.id, profile=professional)

    raise ForbiddenException("Only companies and professionals can bid on requirements")
