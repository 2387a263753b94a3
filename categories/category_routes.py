from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from categories.category_model import CategoryRead
from categories.category_repo import CategoryRepo
from db.session import get_async_session


router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/", response_model=List[CategoryRead])
async def list_categories(session: AsyncSession = Depends(get_async_session)) -> List[CategoryRead]:
    return await CategoryRepo(session).list_categories()
