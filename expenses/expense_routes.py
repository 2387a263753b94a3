from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from auth.context import UserContext
from db.session import get_async_session
from expenses.expense_model import (
    ExpenseCreate,
    ExpenseList,
    ExpenseQuery,
    ExpenseRecorded,
    MonthlySummary,
    UserStats,
)
from expenses.expense_service import ExpenseService
from settings.deps import get_user_context


router = APIRouter(prefix="/expenses", tags=["expenses"])


def get_expense_service(session: AsyncSession = Depends(get_async_session)) -> ExpenseService:
    return ExpenseService(session)


@router.post("/", response_model=ExpenseRecorded, status_code=status.HTTP_201_CREATED)
async def record_expense(
    body: ExpenseCreate,
    background_tasks: BackgroundTasks,
    ctx: Optional[UserContext] = Depends(get_user_context),
    service: ExpenseService = Depends(get_expense_service),
) -> ExpenseRecorded:
    recorded = await service.record_expense(ctx, body)
    if recorded.alerts and ctx is not None:
        background_tasks.add_task(service.alerts.notify, ctx.email, recorded.alerts)
    return recorded


@router.get("/", response_model=ExpenseList)
async def list_expenses(
    search: Optional[str] = Query(None, description="Matches merchant, description or reference id"),
    category: Optional[str] = Query(None),
    sort_by: Literal["date", "amount"] = Query("date"),
    order: Literal["asc", "desc"] = Query("desc"),
    limit: int = Query(500, ge=1, le=1000),
    ctx: Optional[UserContext] = Depends(get_user_context),
    service: ExpenseService = Depends(get_expense_service),
) -> ExpenseList:
    query = ExpenseQuery(search=search, category_id=category, sort_by=sort_by, order=order, limit=limit)
    return await service.list_expenses(ctx, query)


@router.get("/summary/monthly", response_model=MonthlySummary)
async def monthly_summary(
    ctx: Optional[UserContext] = Depends(get_user_context),
    service: ExpenseService = Depends(get_expense_service),
) -> MonthlySummary:
    return await service.monthly_summary(ctx)


@router.get("/stats", response_model=UserStats)
async def user_stats(
    ctx: Optional[UserContext] = Depends(get_user_context),
    service: ExpenseService = Depends(get_expense_service),
) -> UserStats:
    return await service.stats(ctx)
