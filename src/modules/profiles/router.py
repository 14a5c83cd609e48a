"""Company and professional profile routers."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.modules.identity.actors import Actor
from src.modules.identity.auth import get_current_actor
from src.modules.profiles.schemas import (
    CompanyCreate,
    CompanyListResponse,
    CompanyResponse,
    CompanyUpdate,
    ProfessionalCreate,
    ProfessionalListResponse,
    ProfessionalResponse,
    ProfessionalUpdate,
)
from src.modules.profiles.service import ProfileService
from src.schemas.responses import ERROR_RESPONSES

companies_router = APIRouter(prefix="/companies", tags=["companies"])
professionals_router = APIRouter(prefix="/professionals", tags=["professionals"])


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------


@companies_router.post("/", response_model=CompanyResponse, status_code=201, responses=ERROR_RESPONSES)
async def create_company(
    body: CompanyCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    company = await ProfileService(db).create_company(actor, **body.model_dump())
    return CompanyResponse.model_validate(company)


@companies_router.get("/", response_model=CompanyListResponse)
async def list_companies(
    q: str | None = Query(None, max_length=100),
    verified_only: bool = Query(False, alias="verifiedOnly"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    items, total = await ProfileService(db).list_companies(
        search=q, verified_only=verified_only, limit=limit, offset=offset
    )
    return CompanyListResponse(
        items=[CompanyResponse.model_validate(c) for c in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@companies_router.get("/my", response_model=CompanyResponse, responses=ERROR_RESPONSES)
async def get_my_company(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    company = await ProfileService(db).get_my_company(actor)
    return CompanyResponse.model_validate(company)


@companies_router.put("/my", response_model=CompanyResponse, responses=ERROR_RESPONSES)
async def update_my_company(
    body: CompanyUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    company = await ProfileService(db).update_my_company(actor, **body.model_dump(exclude_unset=True))
    return CompanyResponse.model_validate(company)


@companies_router.delete("/my", status_code=204, responses=ERROR_RESPONSES)
async def deactivate_my_company(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate the caller's company; it can no longer bid."""
    await ProfileService(db).deactivate_my_company(actor)


@companies_router.get("/{company_id}", response_model=CompanyResponse, responses=ERROR_RESPONSES)
async def get_company(
    company_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    company = await ProfileService(db).get_company(company_id)
    return CompanyResponse.model_validate(company)


@companies_router.put("/{company_id}/verify", response_model=CompanyResponse, responses=ERROR_RESPONSES)
async def verify_company(
    company_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    company = await ProfileService(db).verify_company(actor, company_id)
    return CompanyResponse.model_validate(company)


# ---------------------------------------------------------------------------
# Professionals
# ---------------------------------------------------------------------------


@professionals_router.post(
    "/", response_model=ProfessionalResponse, status_code=201, responses=ERROR_RESPONSES
)
async def create_professional(
    body: ProfessionalCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    professional = await ProfileService(db).create_professional(actor, **body.model_dump())
    return ProfessionalResponse.model_validate(professional)


@professionals_router.get("/", response_model=ProfessionalListResponse)
async def list_professionals(
    q: str | None = Query(None, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Verified professionals; ``q`` searches name and description."""
    items, total = await ProfileService(db).list_professionals(search=q, limit=limit, offset=offset)
    return ProfessionalListResponse(
        items=[ProfessionalResponse.model_validate(p) for p in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@professionals_router.get("/my", response_model=ProfessionalResponse, responses=ERROR_RESPONSES)
async def get_my_professional(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    professional = await ProfileService(db).get_my_professional(actor)
    return ProfessionalResponse.model_validate(professional)


@professionals_router.put("/my", response_model=ProfessionalResponse, responses=ERROR_RESPONSES)
async def update_my_professional(
    body: ProfessionalUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    professional = await ProfileService(db).update_my_professional(
        actor, **body.model_dump(exclude_unset=True)
    )
    return ProfessionalResponse.model_validate(professional)


@professionals_router.get(
    "/{professional_id}", response_model=ProfessionalResponse, responses=ERROR_RESPONSES
)
async def get_professional(
    professional_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    professional = await ProfileService(db).get_professional(professional_id)
    return ProfessionalResponse.model_validate(professional)


@professionals_router.put(
    "/{professional_id}/verify", response_model=ProfessionalResponse, responses=ERROR_RESPONSES
)
async def verify_professional(
    professional_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    professional = await ProfileService(db).verify_professional(actor, professional_id)
    return ProfessionalResponse.model_validate(professional)
