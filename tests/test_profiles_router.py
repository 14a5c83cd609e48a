"""Tests for the company and professional profile routers."""

import uuid

import pytest

from src.modules.identity.actors import CompanyAdmin
from src.modules.identity.actors import Professional as ProfessionalActor
from src.modules.profiles.router import companies_router, professionals_router


class TestRouterPaths:
    def test_company_paths(self):
        routes = {(r.path, method) for r in companies_router.routes for method in r.methods}
        assert ("/companies/", "POST") in routes
        assert ("/companies/", "GET") in routes
        assert ("/companies/my", "GET") in routes
        assert ("/companies/my", "PUT") in routes
        assert ("/companies/my", "DELETE") in routes
        assert ("/companies/{company_id}", "GET") in routes
        assert ("/companies/{company_id}/verify", "PUT") in routes

    def test_professional_paths(self):
        routes = {(r.path, method) for r in professionals_router.routes for method in r.methods}
        assert ("/professionals/", "POST") in routes
        assert ("/professionals/my", "GET") in routes
        assert ("/professionals/my", "PUT") in routes
        assert ("/professionals/{professional_id}", "GET") in routes
        assert ("/professionals/{professional_id}/verify", "PUT") in routes


class TestCompanyEndpoints:
    @pytest.mark.asyncio
    async def test_create_read_update_own_company(self, async_client, act_as):
        company_admin = CompanyAdmin(user_id=uuid.uuid4())
        act_as(company_admin)

        created = await async_client.post(
            "/api/v1/companies/",
            json={"name": "Urban Nest", "location": "Pune", "contactEmail": "hello@urbannest.in"},
        )
        assert created.status_code == 201
        assert created.json()["adminUserId"] == str(company_admin.user_id)
        assert created.json()["isVerified"] is False

        updated = await async_client.put("/api/v1/companies/my", json={"contactPhone": "+91 98220 00000"})
        assert updated.status_code == 200
        assert updated.json()["contactPhone"] == "+91 98220 00000"
        assert updated.json()["name"] == "Urban Nest"

        mine = await async_client.get("/api/v1/companies/my")
        assert mine.json()["id"] == created.json()["id"]

    @pytest.mark.asyncio
    async def test_second_company_is_409(self, async_client, act_as, make_company):
        _, company_admin = await make_company()
        act_as(company_admin)

        response = await async_client.post("/api/v1/companies/", json={"name": "Another"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "PROFILE_EXISTS"

    @pytest.mark.asyncio
    async def test_bad_contact_email_is_422(self, async_client, act_as):
        act_as(CompanyAdmin(user_id=uuid.uuid4()))

        response = await async_client.post(
            "/api/v1/companies/", json={"name": "Urban Nest", "contactEmail": "not-an-email"}
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_delete_deactivates(self, async_client, act_as, make_company):
        company, company_admin = await make_company()
        act_as(company_admin)

        response = await async_client.delete("/api/v1/companies/my")
        assert response.status_code == 204

        missing = await async_client.get(f"/api/v1/companies/{company.id}")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_verify_is_admin_only(self, async_client, act_as, admin, homeowner):
        company_admin = CompanyAdmin(user_id=uuid.uuid4())
        act_as(company_admin)
        created = await async_client.post("/api/v1/companies/", json={"name": "Urban Nest"})
        company_id = created.json()["id"]

        act_as(homeowner)
        forbidden = await async_client.put(f"/api/v1/companies/{company_id}/verify")
        assert forbidden.status_code == 403

        act_as(admin)
        verified = await async_client.put(f"/api/v1/companies/{company_id}/verify")
        assert verified.status_code == 200
        assert verified.json()["isVerified"] is True


class TestProfessionalEndpoints:
    @pytest.mark.asyncio
    async def test_create_then_admin_verifies(self, async_client, act_as, admin):
        professional_actor = ProfessionalActor(user_id=uuid.uuid4())
        act_as(professional_actor)

        created = await async_client.post(
            "/api/v1/professionals/", json={"name": "Meera Joshi", "email": "meera@studio.in"}
        )
        assert created.status_code == 201
        assert created.json()["isVerified"] is False
        professional_id = created.json()["id"]

        updated = await async_client.put("/api/v1/professionals/my", json={"phone": "+91 90000 11111"})
        assert updated.json()["phone"] == "+91 90000 11111"

        self_verify = await async_client.put(f"/api/v1/professionals/{professional_id}/verify")
        assert self_verify.status_code == 403

        act_as(admin)
        verified = await async_client.put(f"/api/v1/professionals/{professional_id}/verify")
        assert verified.status_code == 200
        assert verified.json()["isVerified"] is True

        listed = await async_client.get("/api/v1/professionals/", params={"q": "meera"})
        assert [p["id"] for p in listed.json()["items"]] == [professional_id]

    @pytest.mark.asyncio
    async def test_missing_own_profile_is_404(self, async_client, act_as):
        act_as(ProfessionalActor(user_id=uuid.uuid4()))

        response = await async_client.get("/api/v1/professionals/my")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PROFILE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_email_is_required(self, async_client, act_as):
        act_as(ProfessionalActor(user_id=uuid.uuid4()))

        response = await async_client.post("/api/v1/professionals/", json={"name": "Meera Joshi"})

        assert response.status_code == 422
