from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from alerts.alert_model import Alert
from alerts.alerts_service import AlertsService, evaluate_threshold
from auth.context import UserContext, require_context
from budgets.budget_repo import BudgetRepo
from budgets.periods import month_bounds
from categories.category_repo import CategoryRepo
from db.models import utcnow
from expenses.expense_model import (
    ExpenseCreate,
    ExpenseList,
    ExpenseQuery,
    ExpenseRead,
    ExpenseRecorded,
    MonthlySummary,
    UserStats,
)
from expenses.expense_repo import ExpenseRepo

logger = logging.getLogger(__name__)


class ExpenseService:
    def __init__(self, session: AsyncSession, alerts: AlertsService | None = None) -> None:
        self.session = session
        self.expenses = ExpenseRepo(session)
        self.budgets = BudgetRepo(session)
        self.categories = CategoryRepo(session)
        self.alerts = alerts or AlertsService()

    async def record_expense(
        self,
        ctx: Optional[UserContext],
        data: ExpenseCreate,
        now: datetime | None = None,
    ) -> ExpenseRecorded:
        """
        Persist an expense, roll it into every matching budget and evaluate
        the budget and monthly overspending thresholds.

        Expense insert failures propagate; per-budget failures are reported in
        the returned outcomes.
        """
        user = require_context(ctx)
        now = now or utcnow()
        amount = Decimal(str(data.amount))

        expense = await self.expenses.create(user.user_id, data, amount, now)
        outcomes = await self.budgets.apply_expense(user.user_id, data.category_id, amount, now)
        await self.session.commit()
        logger.info(
            f"Recorded expense {expense.id} of {amount} in {data.category_id}; "
            f"{sum(o.status == 'updated' for o in outcomes)}/{len(outcomes)} budgets updated"
        )

        alerts: List[Alert] = []
        if any(o.level for o in outcomes):
            names = await self.categories.names_by_id()
            for outcome in outcomes:
                alert = self.alerts.budget_alert(outcome, names.get(outcome.category_id))
                if alert is not None:
                    alerts.append(alert)

        start, end = month_bounds(now)
        monthly_spent = await self.expenses.sum_between(user.user_id, start, end)
        overspending = self.alerts.overspending_alert(monthly_spent, user.overspending_limit)
        if overspending is not None:
            alerts.append(overspending)

        return ExpenseRecorded(
            expense=ExpenseRead.model_validate(expense),
            budgets=outcomes,
            alerts=alerts,
        )

    async def list_expenses(self, ctx: Optional[UserContext], query: ExpenseQuery) -> ExpenseList:
        user = require_context(ctx)
        rows = await self.expenses.list_for_user(user.user_id, query)
        total = sum((row.amount for row in rows), Decimal("0"))
        return ExpenseList(
            items=[ExpenseRead.model_validate(row) for row in rows],
            count=len(rows),
            total=float(total),
        )

    async def monthly_summary(self, ctx: Optional[UserContext], now: datetime | None = None) -> MonthlySummary:
        user = require_context(ctx)
        now = now or utcnow()
        start, end = month_bounds(now)
        spent = await self.expenses.sum_between(user.user_id, start, end)
        limit = user.overspending_limit
        return MonthlySummary(
            month=f"{start.year}-{start.month:02d}",
            spent=float(spent),
            limit=float(limit),
            remaining=float(limit - spent),
            level=evaluate_threshold(spent, limit),
        )

    async def stats(self, ctx: Optional[UserContext], now: datetime | None = None) -> UserStats:
        user = require_context(ctx)
        now = now or utcnow()
        start, end = month_bounds(now)
        active, total = await self.budgets.count_for_user(user.user_id)
        return UserStats(
            total_expenses=await self.expenses.count_for_user(user.user_id),
            monthly_spent=float(await self.expenses.sum_between(user.user_id, start, end)),
            active_budgets=active,
            total_budgets=total,
        )
