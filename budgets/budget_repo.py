from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from alerts.alerts_service import evaluate_threshold
from budgets.budget_model import BudgetUpdateOutcome
from budgets.periods import current_period
from db.models import Budget

logger = logging.getLogger(__name__)


class BudgetNotFoundError(Exception):
    pass


def _rollover(budget_type: str, now: datetime, same: Any, new: Any) -> Dict[str, Any]:
    """
    SET values for a compare-and-swap on the period key: ``same`` when the
    stored period is still current, ``new`` after a rollover. Evaluated by the
    database in the same statement that writes the row.
    """
    period = current_period(budget_type, now)
    return {
        "current_spent": case((Budget.current_period == period, same), else_=new),
        "current_period": period,
    }


class BudgetRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_active(self, user_id: uuid.UUID) -> List[Budget]:
        stmt = (
            select(Budget)
            .where(Budget.user_id == user_id, Budget.is_active.is_(True))
            .order_by(Budget.created_at)
        )
        res = await self._session.execute(stmt)
        return list(res.scalars().all())

    async def active_for_category(self, user_id: uuid.UUID, category_id: str) -> List[Budget]:
        stmt = select(Budget).where(
            Budget.user_id == user_id,
            Budget.category_id == category_id,
            Budget.is_active.is_(True),
        )
        res = await self._session.execute(stmt)
        return list(res.scalars().all())

    async def find_active(self, user_id: uuid.UUID, category_id: str, budget_type: str) -> Optional[Budget]:
        stmt = select(Budget).where(
            Budget.user_id == user_id,
            Budget.category_id == category_id,
            Budget.budget_type == budget_type,
            Budget.is_active.is_(True),
        )
        res = await self._session.execute(stmt)
        return res.scalars().first()

    async def count_for_user(self, user_id: uuid.UUID) -> Tuple[int, int]:
        """Return (active, total) budget counts, soft deleted ones included in total."""
        stmt = select(
            func.count(Budget.id),
            func.count(case((Budget.is_active.is_(True), Budget.id))),
        ).where(Budget.user_id == user_id)
        total, active = (await self._session.execute(stmt)).one()
        return int(active or 0), int(total or 0)

    async def create(
        self,
        user_id: uuid.UUID,
        category_id: str,
        budget_type: str,
        budget_amount: Decimal,
        now: datetime,
    ) -> Budget:
        budget = Budget(
            user_id=user_id,
            category_id=category_id,
            budget_type=budget_type,
            budget_amount=budget_amount,
            current_period=current_period(budget_type, now),
            current_spent=Decimal("0"),
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self._session.add(budget)
        await self._session.flush()
        return budget

    async def change_amount(self, user_id: uuid.UUID, budget_id: uuid.UUID, budget_type: str, budget_amount: Decimal, now: datetime) -> Budget:
        """
        Set a new limit on an active budget. The accumulator survives when the
        stored period is still current and restarts at zero otherwise; the
        comparison happens in the UPDATE itself.
        """
        stmt = (
            update(Budget)
            .where(Budget.id == budget_id, Budget.user_id == user_id, Budget.is_active.is_(True))
            .values(
                budget_amount=budget_amount,
                updated_at=now,
                **_rollover(budget_type, now, same=Budget.current_spent, new=Decimal("0")),
            )
            .returning(Budget.id)
            .execution_options(synchronize_session="fetch")
        )
        res = await self._session.execute(stmt)
        if res.one_or_none() is None:
            raise BudgetNotFoundError(f"Budget {budget_id} not found")
        stmt = select(Budget).where(Budget.id == budget_id).execution_options(populate_existing=True)
        return (await self._session.execute(stmt)).scalar_one()

    async def deactivate(self, user_id: uuid.UUID, budget_id: uuid.UUID, now: datetime) -> None:
        stmt = (
            update(Budget)
            .where(Budget.id == budget_id, Budget.user_id == user_id, Budget.is_active.is_(True))
            .values(is_active=False, updated_at=now)
            .returning(Budget.id)
            .execution_options(synchronize_session="fetch")
        )
        res = await self._session.execute(stmt)
        if res.one_or_none() is None:
            raise BudgetNotFoundError(f"Budget {budget_id} not found")

    async def _apply_one(self, user_id: uuid.UUID, budget_id: uuid.UUID, budget_type: str, amount: Decimal, now: datetime):
        stmt = (
            update(Budget)
            .where(Budget.id == budget_id, Budget.user_id == user_id, Budget.is_active.is_(True))
            .values(
                updated_at=now,
                **_rollover(budget_type, now, same=Budget.current_spent + amount, new=amount),
            )
            .returning(Budget.current_period, Budget.current_spent, Budget.budget_amount)
            .execution_options(synchronize_session="fetch")
        )
        res = await self._session.execute(stmt)
        return res.one_or_none()

    async def apply_expense(
        self,
        user_id: uuid.UUID,
        category_id: str,
        amount: Decimal,
        now: datetime,
    ) -> List[BudgetUpdateOutcome]:
        """
        Add ``amount`` to every active budget of the user on ``category_id``.

        Each budget is updated inside its own savepoint so one failed write
        does not stop the others. Nothing is committed here.
        """
        targets = [
            (b.id, b.budget_type, b.budget_amount)
            for b in await self.active_for_category(user_id, category_id)
        ]
        outcomes: List[BudgetUpdateOutcome] = []
        for budget_id, budget_type, budget_amount in targets:
            try:
                async with self._session.begin_nested():
                    row = await self._apply_one(user_id, budget_id, budget_type, amount, now)
            except SQLAlchemyError as e:
                logger.warning(f"Failed to update budget {budget_id}: {e}")
                outcomes.append(
                    BudgetUpdateOutcome(
                        budget_id=budget_id,
                        category_id=category_id,
                        budget_type=budget_type,
                        status="failed",
                        budget_amount=float(budget_amount),
                        error=str(e),
                    )
                )
                continue
            if row is None:
                # Deactivated since it was listed
                continue
            outcomes.append(
                BudgetUpdateOutcome(
                    budget_id=budget_id,
                    category_id=category_id,
                    budget_type=budget_type,
                    status="updated",
                    budget_amount=float(row.budget_amount),
                    current_period=row.current_period,
                    current_spent=float(row.current_spent),
                    level=evaluate_threshold(row.current_spent, row.budget_amount),
                )
            )
        return outcomes
