from __future__ import annotations

import logging
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from categories.category_model import DEFAULT_CATEGORIES, CategoryRead
from db.models import Category

logger = logging.getLogger(__name__)


class CategoryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_categories(self) -> List[CategoryRead]:
        """Stored categories, or the built-in set while the table is empty."""
        res = await self._session.execute(select(Category).order_by(Category.name))
        rows = list(res.scalars().all())
        if not rows:
            return list(DEFAULT_CATEGORIES)
        return [CategoryRead.model_validate(row) for row in rows]

    async def names_by_id(self) -> Dict[str, str]:
        return {c.id: c.name for c in await self.list_categories()}

    async def seed_defaults(self) -> int:
        count = (await self._session.execute(select(func.count(Category.id)))).scalar_one()
        if count:
            return 0
        self._session.add_all(Category(**c.model_dump()) for c in DEFAULT_CATEGORIES)
        await self._session.commit()
        logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default categories")
        return len(DEFAULT_CATEGORIES)
