from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from auth.context import UserContext
from budgets.budget_model import BudgetCreate, BudgetRead
from budgets.budget_service import BudgetService
from db.session import get_async_session
from settings.deps import get_user_context


router = APIRouter(prefix="/budgets", tags=["budgets"])


def get_budget_service(session: AsyncSession = Depends(get_async_session)) -> BudgetService:
    return BudgetService(session)


@router.get("/", response_model=List[BudgetRead])
async def list_budgets(
    ctx: Optional[UserContext] = Depends(get_user_context),
    service: BudgetService = Depends(get_budget_service),
):
    return await service.list_budgets(ctx)


@router.post("/", response_model=BudgetRead)
async def save_budget(
    body: BudgetCreate,
    ctx: Optional[UserContext] = Depends(get_user_context),
    service: BudgetService = Depends(get_budget_service),
):
    return await service.save_budget(ctx, body)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget(
    budget_id: uuid.UUID,
    ctx: Optional[UserContext] = Depends(get_user_context),
    service: BudgetService = Depends(get_budget_service),
) -> None:
    await service.delete_budget(ctx, budget_id)
