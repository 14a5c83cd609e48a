"""Closed set of caller identities.

The role claim is converted once, at the edge, into one of four variants.
Services branch on the variant type; they never compare role strings.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from src.exceptions import ForbiddenException
from src.models.enums import UserRole


@dataclass(frozen=True)
class Homeowner:
    user_id: uuid.UUID


@dataclass(frozen=True)
class CompanyAdmin:
    """Acts for the company whose ``admin_user_id`` is ``user_id``."""

    user_id: uuid.UUID


@dataclass(frozen=True)
class Professional:
    user_id: uuid.UUID


@dataclass(frozen=True)
class Admin:
    """Platform operator; may act for a homeowner on status changes."""

    user_id: uuid.UUID


Actor = Homeowner | CompanyAdmin | Professional | Admin

# Bidders are the actors that can own quotes
BIDDER_ACTORS = (CompanyAdmin, Professional)

_ROLE_VARIANTS: dict[UserRole, type] = {
    UserRole.HOMEOWNER: Homeowner,
    UserRole.COMPANY_ADMIN: CompanyAdmin,
    UserRole.PROFESSIONAL: Professional,
    UserRole.ADMIN: Admin,
}


def actor_from_role(role: str, user_id: uuid.UUID) -> Actor:
    try:
        variant = _ROLE_VARIANTS[UserRole(role)]
    except ValueError as exc:
        raise ForbiddenException(f"Role '{role}' cannot use the marketplace API") from exc
    return variant(user_id=user_id)


def actor_from_user(user) -> Actor:
    """Build the actor variant for an ``AuthenticatedUser``."""
    return actor_from_role(user.role, user.id)


def is_bidder(actor: Actor) -> bool:
    return isinstance(actor, BIDDER_ACTORS)
