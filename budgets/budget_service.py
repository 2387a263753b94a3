from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from auth.context import UserContext, require_context
from budgets.budget_model import BudgetCreate
from budgets.budget_repo import BudgetRepo
from db.models import Budget, utcnow

logger = logging.getLogger(__name__)


class BudgetService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = BudgetRepo(session)

    async def save_budget(self, ctx: Optional[UserContext], data: BudgetCreate, now: datetime | None = None) -> Budget:
        """
        Create the user's budget for (category, type), or change the amount of
        the active one. Changing the amount rolls the period forward.
        """
        user = require_context(ctx)
        now = now or utcnow()
        amount = Decimal(str(data.budget_amount))
        existing = await self.repo.find_active(user.user_id, data.category_id, data.budget_type)
        if existing is not None:
            budget = await self.repo.change_amount(user.user_id, existing.id, existing.budget_type, amount, now)
            logger.info(f"Updated {data.budget_type} budget {budget.id} for {data.category_id}")
        else:
            budget = await self.repo.create(user.user_id, data.category_id, data.budget_type, amount, now)
            logger.info(f"Created {data.budget_type} budget {budget.id} for {data.category_id}")
        await self.session.commit()
        return budget

    async def list_budgets(self, ctx: Optional[UserContext]) -> List[Budget]:
        user = require_context(ctx)
        return await self.repo.list_active(user.user_id)

    async def delete_budget(self, ctx: Optional[UserContext], budget_id: uuid.UUID, now: datetime | None = None) -> None:
        user = require_context(ctx)
        await self.repo.deactivate(user.user_id, budget_id, now or utcnow())
        await self.session.commit()
        logger.info(f"Deactivated budget {budget_id}")
