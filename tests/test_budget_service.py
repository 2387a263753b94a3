from datetime import datetime, timezone
from decimal import Decimal

import pytest

from auth.context import NotAuthenticatedError
from budgets.budget_model import BudgetCreate
from budgets.budget_repo import BudgetNotFoundError
from budgets.budget_service import BudgetService


@pytest.mark.asyncio
async def test_save_creates_budget_for_current_period(session, ctx, now):
    budget = await BudgetService(session).save_budget(
        ctx, BudgetCreate(category_id="groceries", budget_type="weekly", budget_amount=250), now
    )

    assert budget.user_id == ctx.user_id
    assert budget.current_period == "2024-W24"
    assert budget.current_spent == Decimal("0")
    assert budget.is_active is True


@pytest.mark.asyncio
async def test_save_again_changes_amount_and_keeps_spend(session, make_budget, ctx, now):
    budget_id = await make_budget(ctx.user_id, amount="100", period="2024-06", spent="40")

    budget = await BudgetService(session).save_budget(
        ctx, BudgetCreate(category_id="food-dining", budget_type="monthly", budget_amount=300), now
    )

    assert budget.id == budget_id
    assert budget.budget_amount == Decimal("300")
    assert budget.current_spent == Decimal("40")
    assert len(await BudgetService(session).list_budgets(ctx)) == 1


@pytest.mark.asyncio
async def test_save_again_in_new_period_restarts_spend(session, make_budget, ctx):
    await make_budget(ctx.user_id, amount="100", period="2024-05", spent="40")

    budget = await BudgetService(session).save_budget(
        ctx,
        BudgetCreate(category_id="food-dining", budget_type="monthly", budget_amount=120),
        datetime(2024, 6, 1, tzinfo=timezone.utc),
    )

    assert budget.current_period == "2024-06"
    assert budget.current_spent == Decimal("0")


@pytest.mark.asyncio
async def test_delete_is_soft_and_scoped_to_owner(session, make_budget, ctx, other_ctx, now):
    budget_id = await make_budget(ctx.user_id)
    service = BudgetService(session)

    with pytest.raises(BudgetNotFoundError):
        await service.delete_budget(other_ctx, budget_id, now)

    await service.delete_budget(ctx, budget_id, now)
    assert await service.list_budgets(ctx) == []
    with pytest.raises(BudgetNotFoundError):
        await service.delete_budget(ctx, budget_id, now)


@pytest.mark.asyncio
async def test_requires_user(session):
    service = BudgetService(session)
    with pytest.raises(NotAuthenticatedError):
        await service.list_budgets(None)
    with pytest.raises(NotAuthenticatedError):
        await service.save_budget(None, BudgetCreate(category_id="other", budget_amount=10))
