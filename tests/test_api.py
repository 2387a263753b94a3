import uuid
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from auth.context import UserContext
from auth.tables import UserTable
from expenses.expense_repo import ExpenseRepo
from settings.config import settings
from settings.deps import get_user_context


@pytest.fixture
def as_user(app, ctx):
    app.dependency_overrides[get_user_context] = lambda: ctx
    return ctx


@pytest.mark.asyncio
async def test_anonymous_requests_are_rejected(client):
    for method, path, body in [
        ("POST", "/expenses/", {"amount": 10, "merchant_name": "Grab"}),
        ("GET", "/expenses/", None),
        ("GET", "/budgets/", None),
        ("POST", "/budgets/", {"category_id": "other", "budget_amount": 10}),
    ]:
        resp = await client.request(method, path, json=body)
        assert resp.status_code == 401, path
        assert resp.json()["error"] == "Not authenticated"


@pytest.mark.asyncio
async def test_budget_and_expense_flow(client, as_user):
    created = await client.post("/budgets/", json={"category_id": "food-dining", "budget_type": "monthly", "budget_amount": 100})
    assert created.status_code == 200
    budget = created.json()
    assert budget["current_spent"] == 0

    first = await client.post("/expenses/", json={"amount": 85, "merchant_name": "Nando's", "category_id": "food-dining"})
    assert first.status_code == 201
    assert first.json()["budgets"][0]["current_spent"] == 85

    second = await client.post("/expenses/", json={"amount": 20, "merchant_name": "Starbucks", "category_id": "food-dining"})
    body = second.json()
    assert body["budgets"][0]["current_spent"] == 105
    assert body["budgets"][0]["level"] == "exceeded"
    assert [a["kind"] for a in body["alerts"]] == ["budget"]

    listing = (await client.get("/expenses/", params={"sort_by": "amount", "order": "asc"})).json()
    assert [e["merchant_name"] for e in listing["items"]] == ["Starbucks", "Nando's"]
    assert listing["total"] == 105

    stats = (await client.get("/expenses/stats")).json()
    assert stats["total_expenses"] == 2
    assert stats["active_budgets"] == 1

    summary = (await client.get("/expenses/summary/monthly")).json()
    assert summary["spent"] == 105
    assert summary["level"] is None

    deleted = await client.delete(f"/budgets/{budget['id']}")
    assert deleted.status_code == 204
    assert (await client.get("/budgets/")).json() == []
    missing = await client.delete(f"/budgets/{budget['id']}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_invalid_expense_is_rejected(client, as_user):
    resp = await client.post("/expenses/", json={"amount": 0, "merchant_name": "   "})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_expense_write_failure_surfaces(client, as_user, monkeypatch):
    async def fail(self, *args, **kwargs):
        raise OperationalError("INSERT INTO expenses", {}, Exception("disk I/O error"))

    monkeypatch.setattr(ExpenseRepo, "create", fail)
    resp = await client.post("/expenses/", json={"amount": 5, "merchant_name": "Grab"})

    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to save data"


def test_context_uses_default_limit():
    user = UserTable(id=uuid.uuid4(), email="carol@example.com", hashed_password="x", overspending_limit=None)
    assert UserContext.from_user(user).overspending_limit == Decimal(str(settings.DEFAULT_OVERSPENDING_LIMIT))
    user.overspending_limit = Decimal("250")
    assert UserContext.from_user(user).overspending_limit == Decimal("250")


@pytest.mark.asyncio
async def test_register_login_and_record(client):
    register = await client.post("/auth/register", json={"email": "dana@example.com", "password": "Secret123!@#"})
    assert register.status_code == 201

    login = await client.post(
        "/auth/jwt/login",
        data={"username": "dana@example.com", "password": "Secret123!@#"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    profile = await client.patch("/users/me", json={"display_name": "Dana", "overspending_limit": 50}, headers=headers)
    assert profile.status_code == 200
    assert profile.json()["overspending_limit"] == 50

    recorded = await client.post("/expenses/", json={"amount": 46, "merchant_name": "Watsons"}, headers=headers)
    assert recorded.status_code == 201
    assert [(a["kind"], a["level"]) for a in recorded.json()["alerts"]] == [("overspending", "warning")]
