"""Tests for the requirement and quote routers: paths, methods and HTTP flows."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from src.app import app
from src.modules.bidding.router import quotes_router, requirements_router
from src.modules.identity.actors import Homeowner
from src.modules.identity.auth import get_current_actor


def _get_route(router, path: str, method: str):
    for route in router.routes:
        if route.path == path and method in route.methods:
            return route
    return None


def _timeline(days_from_now: int = 14, length: int = 60) -> dict:
    start = datetime.now(UTC) + timedelta(days=days_from_now)
    return {
        "startDate": start.isoformat(),
        "endDate": (start + timedelta(days=length)).isoformat(),
    }


def _requirement_body(**overrides) -> dict:
    body = {
        "title": "Duplex renovation",
        "description": "Renovate both floors of a duplex",
        "budget": 3000000,
        "timeline": _timeline(),
        "location": "Baner, Pune",
        "buildingType": "Duplex",
        "priority": "high",
    }
    body.update(overrides)
    return body


def _quote_body(requirement_id: str, **overrides) -> dict:
    body = {
        "requirementId": requirement_id,
        "designProposal": "Open plan living with skylights",
        "estimatedBudget": 2750000,
        "budgetBreakdown": {"materials": 1500000, "labor": 1000000, "profit": 250000},
        "timeline": {
            **_timeline(days_from_now=20, length=50),
            "milestones": [{"title": "Demolition", "percentage": 25}],
        },
    }
    body.update(overrides)
    return body


class TestRouterPaths:
    def test_requirement_paths(self):
        paths = {r.path for r in requirements_router.routes}
        assert "/requirements/" in paths
        assert "/requirements/my" in paths
        assert "/requirements/open" in paths
        assert "/requirements/{requirement_id}" in paths
        assert "/requirements/{requirement_id}/public" in paths
        assert "/requirements/{requirement_id}/quotes" in paths
        assert "/requirements/{requirement_id}/select-quote" in paths
        assert "/requirements/{requirement_id}/status" in paths
        assert "/requirements/{requirement_id}/transitions" in paths

    def test_quote_paths(self):
        paths = {r.path for r in quotes_router.routes}
        assert "/quotes/" in paths
        assert "/quotes/my" in paths
        assert "/quotes/analytics/summary" in paths
        assert "/quotes/{quote_id}" in paths


class TestRouterMethods:
    def test_create_and_select_methods(self):
        assert _get_route(requirements_router, "/requirements/", "POST") is not None
        assert _get_route(requirements_router, "/requirements/{requirement_id}/select-quote", "PUT") is not None
        assert _get_route(requirements_router, "/requirements/{requirement_id}/status", "PUT") is not None

    def test_delete_methods(self):
        assert _get_route(requirements_router, "/requirements/{requirement_id}", "DELETE") is not None
        assert _get_route(quotes_router, "/quotes/{quote_id}", "DELETE") is not None

    def test_create_routes_return_201(self):
        assert _get_route(requirements_router, "/requirements/", "POST").status_code == 201
        assert _get_route(quotes_router, "/quotes/", "POST").status_code == 201


class _UnreachableEngine:
    def connect(self):
        raise OSError("connection refused")


class TestOps:
    @pytest.mark.asyncio
    async def test_health_reports_database(self, async_client, async_test_engine, monkeypatch):
        monkeypatch.setattr("src.app.engine", async_test_engine)

        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "ok"}

    @pytest.mark.asyncio
    async def test_health_degraded_without_database(self, async_client, monkeypatch):
        monkeypatch.setattr("src.app.engine", _UnreachableEngine())

        response = await async_client.get("/health")

        assert response.status_code == 503
        assert response.json()["database"] == "unreachable"

    @pytest.mark.asyncio
    async def test_caller_request_id_is_echoed_into_errors(self, async_client, act_as, homeowner):
        act_as(homeowner)
        response = await async_client.get(
            f"/api/v1/requirements/{uuid.uuid4()}", headers={"X-Request-ID": "trace-42"}
        )

        assert response.headers["X-Request-ID"] == "trace-42"
        assert response.json()["error"]["requestId"] == "trace-42"


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, async_client):
        app.dependency_overrides.pop(get_current_actor, None)

        response = await async_client.get("/api/v1/requirements/my")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, async_client):
        app.dependency_overrides.pop(get_current_actor, None)

        response = await async_client.get(
            "/api/v1/requirements/my", headers={"Authorization": "Bearer nonsense"}
        )

        assert response.status_code == 401


class TestRequirementEndpoints:
    @pytest.mark.asyncio
    async def test_create_returns_camel_case(self, async_client, act_as, homeowner):
        act_as(homeowner)

        response = await async_client.post("/api/v1/requirements/", json=_requirement_body())

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "open"
        assert data["homeownerId"] == str(homeowner.user_id)
        assert data["budgetRange"] == "₹25L - ₹50L"
        assert data["buildingType"] == "Duplex"
        assert data["quotes"] == []
        assert data["selectedQuote"] is None
        assert data["timelineDurationDays"] == 60

    @pytest.mark.asyncio
    async def test_reversed_timeline_is_422(self, async_client, act_as, homeowner):
        act_as(homeowner)
        start = datetime.now(UTC) + timedelta(days=10)
        body = _requirement_body(
            timeline={"startDate": start.isoformat(), "endDate": (start - timedelta(days=1)).isoformat()}
        )

        response = await async_client.post("/api/v1/requirements/", json=body)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_bidder_cannot_post(self, async_client, act_as, make_company):
        _, company_admin = await make_company()
        act_as(company_admin)

        response = await async_client.post("/api/v1/requirements/", json=_requirement_body())

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_bidder_sees_public_view_only(self, async_client, act_as, homeowner, make_requirement, make_company):
        requirement = await make_requirement(homeowner)
        _, company_admin = await make_company()
        act_as(company_admin)

        private = await async_client.get(f"/api/v1/requirements/{requirement.id}")
        public = await async_client.get(f"/api/v1/requirements/{requirement.id}/public")

        assert private.status_code == 403
        assert public.status_code == 200
        assert "homeownerId" not in public.json()
        assert "quotes" not in public.json()

    @pytest.mark.asyncio
    async def test_open_listing_with_filters(self, async_client, act_as, homeowner, make_requirement, make_professional):
        await make_requirement(homeowner, location="Indiranagar, Bengaluru")
        await make_requirement(homeowner, location="Andheri, Mumbai")
        _, professional = await make_professional()
        act_as(professional)

        response = await async_client.get(
            "/api/v1/requirements/open", params={"location": "mumbai", "buildingType": "Apartment"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["location"] == "Andheri, Mumbai"

    @pytest.mark.asyncio
    async def test_missing_requirement_is_404(self, async_client, act_as, homeowner):
        act_as(homeowner)

        response = await async_client.get(f"/api/v1/requirements/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_invalid_status_change_is_422(self, async_client, act_as, homeowner, make_requirement):
        requirement = await make_requirement(homeowner)
        act_as(homeowner)

        response = await async_client.put(
            f"/api/v1/requirements/{requirement.id}/status", json={"status": "completed"}
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

    @pytest.mark.asyncio
    async def test_delete_cancels_requirement(self, async_client, act_as, homeowner, make_requirement):
        requirement = await make_requirement(homeowner)
        act_as(homeowner)

        response = await async_client.delete(
            f"/api/v1/requirements/{requirement.id}", params={"reason": "Postponed"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["isActive"] is False

        transitions = await async_client.get(f"/api/v1/requirements/{requirement.id}/transitions")
        assert [t["toStatus"] for t in transitions.json()] == ["open", "cancelled"]
        assert transitions.json()[-1]["reason"] == "Postponed"


class TestQuoteFlow:
    @pytest.mark.asyncio
    async def test_post_quote_select_and_reselect(
        self, async_client, act_as, homeowner, make_company, make_professional
    ):
        act_as(homeowner)
        created = await async_client.post("/api/v1/requirements/", json=_requirement_body())
        requirement_id = created.json()["id"]

        company, company_admin = await make_company("Skyline Builders")
        act_as(company_admin)
        submitted = await async_client.post("/api/v1/quotes/", json=_quote_body(requirement_id))
        assert submitted.status_code == 201
        quote = submitted.json()
        assert quote["status"] == "submitted"
        assert quote["bidderType"] == "company"
        assert quote["companyId"] == str(company.id)
        assert quote["completionPercentage"] == 25.0
        assert quote["isExpired"] is False

        _, professional = await make_professional()
        act_as(professional)
        rival = await async_client.post(
            "/api/v1/quotes/", json=_quote_body(requirement_id, estimatedBudget=2600000)
        )
        assert rival.status_code == 201

        act_as(homeowner)
        listed = await async_client.get(f"/api/v1/requirements/{requirement_id}/quotes")
        assert listed.status_code == 200
        assert {q["bidder"]["name"] for q in listed.json()} == {"Skyline Builders", "Asha Architect"}

        selected = await async_client.put(
            f"/api/v1/requirements/{requirement_id}/select-quote", json={"quoteId": quote["id"]}
        )
        assert selected.status_code == 200
        body = selected.json()
        assert body["requirement"]["status"] == "company_selected"
        assert body["requirement"]["selectedQuote"] == quote["id"]
        assert body["quote"]["status"] == "accepted"

        again = await async_client.put(
            f"/api/v1/requirements/{requirement_id}/select-quote",
            json={"quoteId": rival.json()["id"]},
        )
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "ALREADY_SELECTED"

        act_as(professional)
        lost = await async_client.get(f"/api/v1/quotes/{rival.json()['id']}")
        assert lost.json()["status"] == "rejected"

    @pytest.mark.asyncio
    async def test_duplicate_quote_is_409(self, async_client, act_as, homeowner, make_requirement, make_company):
        requirement = await make_requirement(homeowner)
        requirement_id = str(requirement.id)
        _, company_admin = await make_company()
        act_as(company_admin)

        first = await async_client.post("/api/v1/quotes/", json=_quote_body(requirement_id))
        second = await async_client.post("/api/v1/quotes/", json=_quote_body(requirement_id))

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "DUPLICATE_QUOTE"

    @pytest.mark.asyncio
    async def test_milestones_over_100_percent_are_422(self, async_client, act_as, homeowner, make_requirement, make_company):
        requirement = await make_requirement(homeowner)
        _, company_admin = await make_company()
        act_as(company_admin)
        body = _quote_body(str(requirement.id))
        body["timeline"]["milestones"] = [
            {"title": "Phase 1", "percentage": 60},
            {"title": "Phase 2", "percentage": 50},
        ]

        response = await async_client.post("/api/v1/quotes/", json=body)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_quote_on_unknown_requirement_is_404(self, async_client, act_as, make_company):
        _, company_admin = await make_company()
        act_as(company_admin)

        response = await async_client.post("/api/v1/quotes/", json=_quote_body(str(uuid.uuid4())))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "REQUIREMENT_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_update_and_withdraw(self, async_client, act_as, homeowner, make_requirement, make_company):
        requirement = await make_requirement(homeowner)
        _, company_admin = await make_company()
        act_as(company_admin)
        created = await async_client.post("/api/v1/quotes/", json=_quote_body(str(requirement.id)))
        quote_id = created.json()["id"]

        updated = await async_client.put(
            f"/api/v1/quotes/{quote_id}",
            json={"estimatedBudget": 2500000, "additionalNotes": "Includes false ceiling"},
        )
        assert updated.status_code == 200
        assert updated.json()["additionalNotes"] == "Includes false ceiling"
        assert float(updated.json()["estimatedBudget"]) == 2500000

        withdrawn = await async_client.delete(f"/api/v1/quotes/{quote_id}")
        assert withdrawn.status_code == 200
        assert withdrawn.json()["status"] == "withdrawn"

        mine = await async_client.get("/api/v1/quotes/my")
        assert mine.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_stranger_cannot_read_quote(
        self, async_client, act_as, homeowner, make_requirement, make_company, make_quote
    ):
        requirement = await make_requirement(homeowner)
        _, company_admin = await make_company()
        quote = await make_quote(company_admin, requirement.id)
        act_as(Homeowner(user_id=uuid.uuid4()))

        response = await async_client.get(f"/api/v1/quotes/{quote.id}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "QUOTE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_analytics_summary(self, async_client, act_as, homeowner, make_requirement, make_professional, make_quote):
        requirement = await make_requirement(homeowner)
        _, professional = await make_professional()
        await make_quote(professional, requirement.id)
        act_as(professional)

        response = await async_client.get("/api/v1/quotes/analytics/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["totalQuotes"] == 1
        assert data["acceptedQuotes"] == 0
        assert data["conversionRate"] == 0.0
        assert data["byStatus"]["submitted"]["count"] == 1


class TestNotificationEndpoints:
    @pytest.mark.asyncio
    async def test_homeowner_inbox_after_quote(
        self, async_client, act_as, homeowner, make_requirement, make_company, make_quote
    ):
        requirement = await make_requirement(homeowner)
        _, company_admin = await make_company()
        await make_quote(company_admin, requirement.id)
        act_as(homeowner)

        inbox = await async_client.get("/api/v1/notifications/")
        assert inbox.status_code == 200
        assert inbox.json()["total"] == 1
        assert inbox.json()["unreadCount"] == 1
        assert inbox.json()["items"][0]["type"] == "quote_submitted"

        marked = await async_client.put("/api/v1/notifications/read-all")
        assert marked.json() == {"updated": 1}

        unread = await async_client.get("/api/v1/notifications/", params={"unreadOnly": True})
        assert unread.json()["total"] == 0

        notification_id = inbox.json()["items"][0]["id"]
        deleted = await async_client.delete(f"/api/v1/notifications/{notification_id}")
        assert deleted.status_code == 204


class TestPresenceEndpoints:
    @pytest.mark.asyncio
    async def test_offline_user(self, async_client, act_as, homeowner):
        act_as(homeowner)
        user_id = uuid.uuid4()

        response = await async_client.get(f"/api/v1/presence/{user_id}")

        assert response.status_code == 200
        assert response.json() == {"userId": str(user_id), "online": False}
