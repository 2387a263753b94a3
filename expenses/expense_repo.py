from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List

from sqlalchemy import Select, asc, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Expense
from expenses.expense_model import ExpenseCreate, ExpenseQuery


class ExpenseRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user_id: uuid.UUID, data: ExpenseCreate, amount: Decimal, now: datetime) -> Expense:
        expense = Expense(
            user_id=user_id,
            amount=amount,
            merchant_name=data.merchant_name,
            reference_id=data.reference_id,
            transaction_date=data.transaction_date or now.date().isoformat(),
            transaction_time=data.transaction_time,
            description=data.description,
            category_id=data.category_id,
            location=data.location.model_dump() if data.location else None,
            extracted_text=data.extracted_text,
            created_at=now,
            updated_at=now,
        )
        self._session.add(expense)
        await self._session.flush()
        return expense

    async def list_for_user(self, user_id: uuid.UUID, query: ExpenseQuery) -> List[Expense]:
        stmt: Select[tuple[Expense]] = select(Expense).where(Expense.user_id == user_id)
        if query.search and query.search.strip():
            term = query.search.strip()
            stmt = stmt.where(
                or_(
                    Expense.merchant_name.icontains(term, autoescape=True),
                    Expense.description.icontains(term, autoescape=True),
                    Expense.reference_id.icontains(term, autoescape=True),
                )
            )
        if query.category_id:
            stmt = stmt.where(Expense.category_id == query.category_id)
        column = Expense.amount if query.sort_by == "amount" else Expense.created_at
        direction = asc if query.order == "asc" else desc
        stmt = stmt.order_by(direction(column), direction(Expense.id)).limit(query.limit)
        res = await self._session.execute(stmt)
        return list(res.scalars().all())

    async def count_for_user(self, user_id: uuid.UUID) -> int:
        stmt = select(func.count(Expense.id)).where(Expense.user_id == user_id)
        return int((await self._session.execute(stmt)).scalar_one())

    async def sum_between(self, user_id: uuid.UUID, start: datetime, end: datetime) -> Decimal:
        """Total of expenses created in [start, end)."""
        stmt = select(func.coalesce(func.sum(Expense.amount), 0)).where(
            Expense.user_id == user_id,
            Expense.created_at >= start,
            Expense.created_at < end,
        )
        total = (await self._session.execute(stmt)).scalar_one()
        return Decimal(str(total or 0))
